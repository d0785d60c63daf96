# dashboard/views.py

import time

from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require, resolve_actor

from .services import overview


class DashboardOverviewView(APIView):
    """
    GET /api/dashboard/ -> totals, invoice stats, charts, growth (cached 300 s)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        start = time.monotonic()
        actor = resolve_actor(request)
        require(actor, "dashboard.view")

        response = Response(overview(actor.company))
        response["Cache-Control"] = "private, max-age=0"
        response["Server-Timing"] = f"total;dur={(time.monotonic() - start) * 1000:.1f}"
        return response
