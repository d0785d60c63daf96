# accounts/__init__.py
"""
Accounts app - Authentication and multi-tenancy for Invo.

This app provides:
- Company: Tenant model (legal profile and subscription state)
- User: Custom user model with active_company and phone login
- CompanyMembership: User-Company relationship with a role
- InvoPermission: Fine-grained permission codes
- ActorContext: Authorization context utilities

Multi-tenancy is enforced at every layer through the ActorContext pattern.
"""
