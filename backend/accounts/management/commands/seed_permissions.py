# accounts/management/commands/seed_permissions.py

from django.core.management.base import BaseCommand

from accounts.models import CompanyMembership
from accounts.permissions import ensure_permission_catalogue, grant_role_defaults


class Command(BaseCommand):
    help = "Seed the permission catalogue and (optionally) grant role defaults to existing memberships"

    def add_arguments(self, parser):
        parser.add_argument(
            "--grant-defaults",
            action="store_true",
            help="Grant missing role defaults to every active membership",
        )

    def handle(self, *args, **options):
        created = ensure_permission_catalogue()
        granted = 0

        if options["grant_defaults"]:
            for membership in CompanyMembership.objects.filter(is_active=True).select_related("company"):
                granted += grant_role_defaults(membership)

        self.stdout.write(self.style.SUCCESS(f"Done! Created {created} permissions, granted {granted}."))
