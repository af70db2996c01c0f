"""Streamlit Cloud entry point.

Deployments launch ``streamlit_app.py`` as the main module; the console
itself lives in :mod:`admin_app`, so we simply forward ``main`` here.
"""

from admin_app import main as admin_main


def main() -> None:
    """Invoke the ledger console."""

    admin_main()


if __name__ == "__main__":  # pragma: no cover
    main()
