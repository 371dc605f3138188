"""Save APEC cookie-consent cookies for the browser render fallback.

Usage:
    .venv/bin/python scripts/save_consent_cookies.py [output_path]

Opens a Chromium window on apec.fr. Accept (or refuse) the cookie banner,
then press Enter in the terminal. Cookies are written as a JSON array,
the format ``browser.cookies_path`` expects (default
config/apec_cookies.json).
"""

import json
import sys
from pathlib import Path

from patchright.sync_api import sync_playwright

DEFAULT_OUTPUT = Path("config/apec_cookies.json")
START_URL = "https://www.apec.fr/candidat/recherche-emploi.html/emploi"


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    output = Path(args[0]) if args else DEFAULT_OUTPUT

    with sync_playwright() as p:
        browser = p.chromium.launch(headless=False)
        context = browser.new_context(locale="fr-FR")
        page = context.new_page()
        page.goto(START_URL)

        input("\n>>> Answer the cookie banner, then press Enter here to save cookies...")

        cookies = context.cookies()
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(cookies, indent=2))
        print(f"Saved {len(cookies)} cookies to {output}")

        browser.close()


if __name__ == "__main__":
    main()
