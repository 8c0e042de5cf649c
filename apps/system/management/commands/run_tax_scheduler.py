"""Long-running process that keeps the tax database fresh."""

from __future__ import annotations

import asyncio
from typing import Any

from django.core.management.base import BaseCommand, CommandError

from core.logging import get_logger
from services.taxes import get_initializer

logger = get_logger(__name__)


class Command(BaseCommand):
    help = "Check hourly whether the tax database is due for refresh and collect when it is."

    def handle(self, *args: Any, **options: Any) -> None:
        initializer = get_initializer()
        if not initializer.enabled:
            raise CommandError("APILAYER_API_KEY is not configured")

        self.stdout.write("Tax data scheduler running, press Ctrl+C to stop")
        try:
            asyncio.run(self._serve())
        except KeyboardInterrupt:
            logger.info("Tax data scheduler interrupted")
        self.stdout.write(self.style.SUCCESS("Tax data scheduler stopped"))

    async def _serve(self) -> None:
        initializer = get_initializer()
        try:
            await initializer.run_forever()
        finally:
            await initializer.scheduler.collector.client.close()
