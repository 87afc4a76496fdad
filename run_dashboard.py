"""Convenience launcher for the Streamlit app.

Usage:
  streamlit run run_dashboard.py

Automatically imports every module in ``kpi_app/pages`` so each page
decorated with ``@register_page`` registers itself without manual edits here.
"""

import logging
from importlib import import_module
from pathlib import Path

import streamlit as st

from kpi_app.app import main
from kpi_app.core.config import SETTINGS, configure_logging

st.set_page_config(layout="wide", page_title="Team KPI Dashboard")
configure_logging(SETTINGS.log_level)
logger = logging.getLogger("run_dashboard")


def _auto_init_issue_service():
    """Initialize Jira service from Streamlit secrets if available."""
    if "issue_service" in st.session_state:
        return

    from kpi_app.pages.setup import read_jira_secrets

    secrets = read_jira_secrets()
    if secrets["server"] and secrets["email"] and secrets["token"]:
        st.sidebar.info("Secrets found, attempting to connect to Jira...")
        try:
            from kpi_app.core.jira_client import JiraAPI
            from kpi_app.core.service import IssueService

            api = JiraAPI(secrets["server"], secrets["email"], secrets["token"])
            st.session_state["jira_server"] = secrets["server"]
            st.session_state["jira_email"] = secrets["email"]
            st.session_state["issue_service"] = IssueService(api, st.session_state.get("team_scope"))
            st.sidebar.success("Jira connection successful!")
        except Exception as e:
            logger.error("Jira connection failed: %s", e)
            st.sidebar.error(f"Jira connection failed: {e}")
            st.session_state.pop("issue_service", None)
    else:
        st.sidebar.warning("Jira secrets not found. Please use the Setup page.")


PAGES_DIR = Path(__file__).parent / "kpi_app" / "pages"
for py in sorted(PAGES_DIR.glob("[!_]*.py")):
    mod_name = f"kpi_app.pages.{py.stem}"
    try:
        import_module(mod_name)
    except Exception as e:  # pragma: no cover
        logger.error("Failed importing page %s: %s", mod_name, e)

_auto_init_issue_service()

if __name__ == "__main__":
    main()
