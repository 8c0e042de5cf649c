"""Run one tax data collection from the command line."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from core.config import get_settings
from services.taxes import RefreshScheduler
from services.taxes.types import JobStatus

if TYPE_CHECKING:
    from argparse import ArgumentParser

    from services.taxes.types import JobResult


class Command(BaseCommand):
    help = "Collect VAT rates from the tax data provider if the stored data is due for refresh."

    def add_arguments(self, parser: ArgumentParser) -> None:
        parser.add_argument(
            "--force",
            action="store_true",
            help="Collect even if the last collection is recent.",
        )

    def handle(self, *args: Any, **options: Any) -> None:
        tax_settings = get_settings().tax
        if not tax_settings.is_configured:
            raise CommandError("APILAYER_API_KEY is not configured")

        result = async_to_sync(self._run)(force=options["force"])

        if result.status is JobStatus.FAILED:
            raise CommandError(result.message)
        self.stdout.write(
            self.style.SUCCESS(
                f"{result.message} ({result.countries_collected} countries, "
                f"{result.errors} errors, {result.execution_time_ms} ms)"
            )
        )

    async def _run(self, force: bool) -> JobResult:
        scheduler = RefreshScheduler.from_settings(get_settings().tax)
        try:
            if force:
                return await scheduler.force_collect()
            return await scheduler.maybe_collect()
        finally:
            await scheduler.collector.client.close()
