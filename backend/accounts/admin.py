from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import Company, CompanyMembership, InvoPermission, User


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    fieldsets = (
        (None, {"fields": ("email", "password", "name", "phone_number", "active_company")}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")}),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("email", "name", "password1", "password2")}),
    )
    list_display = ("email", "name", "phone_number", "is_staff")
    search_fields = ("email", "name", "phone_number")
    ordering = ("email",)


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ("name", "legal_name", "subscription_status", "trial_end_date", "is_active")
    list_filter = ("subscription_status", "is_active")
    search_fields = ("name", "legal_name", "registration_number", "tax_identification_number")


@admin.register(CompanyMembership)
class CompanyMembershipAdmin(admin.ModelAdmin):
    list_display = ("user", "company", "role", "is_active")
    list_filter = ("role", "is_active")
    search_fields = ("user__email", "company__name")


@admin.register(InvoPermission)
class InvoPermissionAdmin(admin.ModelAdmin):
    list_display = ("code", "module", "name")
    list_filter = ("module",)
