from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from calendar_portlet.servicios.google_calendar import SCOPES, GoogleCalendarService


class Command(BaseCommand):
    help = (
        "Autoriza el acceso de solo lectura a Google Calendar y guarda el token "
        "en GOOGLE_TOKEN_FILE (lo usa GoogleCalendarAdapter)."
    )

    def add_arguments(self, parser):
        parser.add_argument("--port", type=int, default=0, help="Puerto local para el callback OAuth.")
        parser.add_argument(
            "--force", action="store_true", help="Pide autorización aunque el token actual siga vigente."
        )

    def handle(self, *args, **options):
        client_secrets = getattr(settings, "GOOGLE_CREDENTIALS_FILE", None)
        if not client_secrets:
            raise CommandError("GOOGLE_CREDENTIALS_FILE no está configurado en settings.")

        try:
            token = Path(GoogleCalendarService.token_path())
        except RuntimeError as e:
            raise CommandError(str(e)) from e

        if token.exists() and not options["force"]:
            current = Credentials.from_authorized_user_file(str(token), SCOPES)
            if current.valid:
                self.stdout.write(f"El token en {token} sigue vigente; usa --force para renovarlo.")
                return

        flow = InstalledAppFlow.from_client_secrets_file(str(client_secrets), SCOPES)
        creds = flow.run_local_server(port=options["port"])
        token.write_text(creds.to_json(), encoding="utf-8")

        self.stdout.write(self.style.SUCCESS(f"Token guardado en {token}"))
