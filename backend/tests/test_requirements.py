"""
Test suite for verifying project dependencies and requirements.

This module tests that all required dependencies are properly installed
and accessible for the Study Group backend.
"""

import sys
from pathlib import Path


class TestDependencies:
    """Test that all required dependencies are installed."""

    # Core Python dependencies
    def test_python_version(self):
        """Test Python version is 3.11+."""
        major, minor = sys.version_info[:2]
        assert major == 3 and minor >= 11, f"Python 3.11+ required, got {major}.{minor}"

    # FastAPI and web framework
    def test_fastapi_installed(self):
        """Test FastAPI is installed."""
        import fastapi
        assert fastapi.__version__ is not None

    def test_uvicorn_installed(self):
        """Test uvicorn is installed."""
        import uvicorn
        assert uvicorn.__version__ is not None

    # SQLAlchemy and database
    def test_sqlalchemy_installed(self):
        """Test SQLAlchemy is installed."""
        import sqlalchemy
        assert sqlalchemy.__version__ is not None

    def test_aiomysql_installed(self):
        """Test aiomysql is installed."""
        import aiomysql
        assert aiomysql is not None

    # LangChain and LangGraph
    def test_langchain_installed(self):
        """Test LangChain is installed."""
        from langchain_core import messages
        assert messages is not None

    def test_langchain_openai_installed(self):
        """Test the OpenAI-compatible chat model client is installed."""
        from langchain_openai import ChatOpenAI
        assert ChatOpenAI is not None

    def test_langgraph_installed(self):
        """Test LangGraph is installed."""
        from langgraph.graph import StateGraph
        assert StateGraph is not None

    # Utilities
    def test_pydantic_installed(self):
        """Test Pydantic v2 is installed."""
        import pydantic
        assert pydantic.VERSION.startswith("2.")

    def test_pydantic_settings_installed(self):
        """Test pydantic-settings is installed."""
        import pydantic_settings
        assert pydantic_settings is not None

    def test_python_dotenv_installed(self):
        """Test python-dotenv is installed."""
        import dotenv
        assert dotenv is not None

    def test_httpx_installed(self):
        """Test httpx is installed."""
        import httpx
        assert httpx.__version__ is not None


class TestProjectStructure:
    """Test that required project directories exist."""

    def test_backend_structure(self):
        """Test backend directory structure."""
        package_path = Path(__file__).parent.parent / "study_group"
        required_dirs = [
            package_path / "agents" / "base",
            package_path / "agents" / "study_group",
            package_path / "api",
            package_path / "core",
            package_path / "db",
            package_path / "observability",
        ]

        for dir_path in required_dirs:
            assert dir_path.exists(), f"Required directory not found: {dir_path}"


class TestConfiguration:
    """Test application configuration."""

    def test_config_module_exists(self):
        """Test config module can be imported."""
        from study_group.core import config
        assert config is not None

    def test_config_has_required_settings(self):
        """Test config has required settings."""
        from study_group.core.config import settings

        required_attrs = [
            "DATABASE_URL",
            "STORAGE_BACKEND",
            "LLM_BASE_URL",
            "LLM_MODEL",
            "LLM_REASONING_MODEL",
            "HISTORY_WINDOW",
            "PERFORMANCE_LOOKBACK",
        ]

        for attr in required_attrs:
            assert hasattr(settings, attr), f"Config missing: {attr}"

    def test_cors_lists(self):
        """Test comma-separated CORS settings are split."""
        from study_group.core.config import Settings

        settings = Settings(CORS_ORIGINS="http://a.test, http://b.test", CORS_ALLOW_HEADERS="x-one,x-two")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]
        assert settings.cors_allow_headers_list == ["x-one", "x-two"]

    def test_log_level_normalized(self):
        from study_group.core.config import Settings

        assert Settings(LOG_LEVEL=" debug ").LOG_LEVEL == "DEBUG"

    def test_configure_logging_sets_root_level(self):
        import logging

        from study_group.core.config import Settings
        from study_group.core.logging import configure_logging

        root = logging.getLogger()
        previous = root.level
        try:
            configure_logging(Settings(LOG_LEVEL="warning"))
            assert root.level == logging.WARNING
        finally:
            root.setLevel(previous)
