"""Connection setup page: collect Jira credentials and team scope, build IssueService."""

from __future__ import annotations

import logging

import streamlit as st

from kpi_app.app import register_page
from kpi_app.core.config import (
    DEFAULT_PLATFORM_FIELD,
    DEFAULT_PLATFORMS,
    DEFAULT_PROJECT_NAME,
    DEFAULT_TEAM_FIELD,
    DEFAULT_TEAM_NAME,
    JIRA_DEFAULT_SERVER,
    SEARCH_CACHE_TTL,
)
from kpi_app.core.jira_client import JiraAPI
from kpi_app.core.queries import TeamScope
from kpi_app.core.service import IssueService

logger = logging.getLogger(__name__)


def read_jira_secrets() -> dict[str, str | None]:
    """Credentials from a ``[jira]`` secrets section, falling back to top level."""
    jira_secrets = st.secrets.get("jira", {})
    return {
        "server": jira_secrets.get("JIRA_SERVER") or st.secrets.get("JIRA_SERVER"),
        "email": jira_secrets.get("JIRA_EMAIL") or st.secrets.get("JIRA_EMAIL"),
        "token": (
            jira_secrets.get("JIRA_API_TOKEN")
            or st.secrets.get("JIRA_API_TOKEN")
            or jira_secrets.get("JIRA_TOKEN")
            or st.secrets.get("JIRA_TOKEN")
        ),
    }


def _split_csv(text: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in text.split(",") if part.strip())


@register_page("Setup / Connection")
def setup_page():
    st.title("Jira Connection Setup")
    st.caption("Enter credentials (use secrets manager in production).")

    secrets = read_jira_secrets()
    server = st.text_input(
        "Jira Server URL",
        value=st.session_state.get("jira_server") or secrets["server"] or "",
        placeholder=JIRA_DEFAULT_SERVER,
    )
    email = st.text_input("Email / Username", value=st.session_state.get("jira_email") or secrets["email"] or "")
    token = st.text_input("API Token", type="password", value=secrets["token"] or "")
    ttl = st.number_input(
        "Client cache TTL (seconds)", min_value=60, max_value=3600, value=int(SEARCH_CACHE_TTL)
    )

    st.subheader("Team scope")
    current: TeamScope = st.session_state.get("team_scope") or TeamScope()
    project = st.text_input("Project", value=current.project or DEFAULT_PROJECT_NAME)
    team_field = st.text_input("Team field", value=current.team_field or DEFAULT_TEAM_FIELD)
    team = st.text_input("Team", value=current.team or DEFAULT_TEAM_NAME)
    members = st.text_input(
        "Member account IDs (comma separated)",
        value=", ".join(current.member_ids),
        help="Issues assigned to these accounts count as team work even without the team field.",
    )
    platform_field = st.text_input("Platform field", value=current.platform_field or DEFAULT_PLATFORM_FIELD)
    platforms = st.text_input("Platforms (comma separated)", value=", ".join(current.platforms or DEFAULT_PLATFORMS))

    if st.button("Initialize Connection", type="primary"):
        if not (server and email and token):
            st.error("All fields required.")
            return
        scope = TeamScope(
            project=project.strip(),
            team_field=team_field.strip(),
            team=team.strip() or None,
            member_ids=_split_csv(members),
            platform_field=platform_field.strip(),
            platforms=_split_csv(platforms),
        )
        try:
            api = JiraAPI(server, email, token, cache_ttl=float(ttl))
        except Exception as exc:  # pragma: no cover
            logger.error("Jira client initialization failed: %s", exc)
            st.error(f"Failed to initialize Jira client: {exc}")
            return
        st.session_state["jira_server"] = server
        st.session_state["jira_email"] = email
        st.session_state["team_scope"] = scope
        st.session_state["issue_service"] = IssueService(api, scope)
        st.session_state.pop("dashboard_data", None)
        st.success("Connection initialized.")

    if "issue_service" in st.session_state:
        st.info("IssueService ready.")
