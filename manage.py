#!/usr/bin/env python
"""Django's command-line utility: migrations, admin and channel connection checks."""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Credentials for local runs live in .env at the project root
load_dotenv(Path(__file__).resolve().parent / ".env")

from django.core.management import execute_from_command_line


def main() -> None:
    """Run administrative tasks such as ``check_channel_connections``."""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings.development")
    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
