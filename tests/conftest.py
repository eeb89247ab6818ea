"""
Pytest configuration and shared fixtures for jPulse tests.
"""

import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from jpulse_core.application import JPulseApplication  # noqa: E402
from jpulse_core.config import ConfigLoader, JPulseConfig  # noqa: E402
from jpulse_core.paths import PathResolver  # noqa: E402
from jpulse_core.template import HandlebarEngine, HelperRegistry, register_core_helpers  # noqa: E402
from jpulse_core.types import RequestInfo  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR{{app.name}}"


# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def tests_dir() -> Path:
    """Return the tests directory."""
    return Path(__file__).parent


def write_file(path: Path, content: str | bytes) -> Path:
    """Create parent directories and write text or bytes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


# =============================================================================
# Webapp Tree Fixtures
# =============================================================================


@pytest.fixture
def webapp_tree(tmp_path: Path) -> Path:
    """Framework webapp, site override and translations under tmp_path.

    Layout:
        webapp/view/...            framework files
        site/webapp/view/...       site overrides
        webapp/translations/*.yaml
    """
    framework = tmp_path / "webapp"
    site = tmp_path / "site" / "webapp"

    write_file(framework / "view" / "index.shtml", '<h1>{{app.name}}</h1>{{file.include "jpulse-footer.tmpl"}}')
    write_file(framework / "view" / "jpulse-footer.tmpl", "<footer>{{appConfig.system.defaultTheme}}</footer>")
    write_file(framework / "view" / "about" / "index.shtml", "About {{url.pathname}}")
    write_file(framework / "view" / "error" / "index.shtml", "<p>Error {{url.param.code}}: {{url.param.msg}}</p>")
    write_file(framework / "view" / "jpulse-common.css", "body { color: black; }")
    write_file(framework / "view" / "jpulse-common.js", "var theme = '{{appConfig.system.defaultTheme}}';")
    write_file(framework / "view" / "icon.svg", "<svg><title>{{app.name}}</title></svg>")
    write_file(framework / "view" / "logo.png", PNG_BYTES)
    write_file(framework / "view" / "data.json", '{"name": "{{app.name}}"}')
    write_file(framework / "view" / "greeting.shtml", "{{i18n.view.greeting}}, {{user.firstName}}")
    write_file(framework / "view" / "self.tmpl", 'x{{file.include "self.tmpl"}}')
    write_file(framework / "view" / "examples" / "alpha.shtml", "alpha")
    write_file(framework / "view" / "examples" / "beta.shtml", "beta (framework)")

    write_file(site / "view" / "jpulse-common.css", ".site { color: red; }")
    write_file(site / "view" / "examples" / "beta.shtml", "beta (site)")
    write_file(site / "view" / "examples" / "gamma.shtml", "gamma")
    write_file(site / "view" / "hello.shtml", 'Site says {{string.uppercase "hi " user.firstName}}')

    write_file(
        framework / "translations" / "en.yaml",
        "lang: English\n"
        "view:\n"
        "  greeting: Hello\n"
        "  farewell: Goodbye\n"
        "controller:\n"
        "  view:\n"
        "    pageNotFoundError: 'Page not found: {{path}}'\n",
    )
    write_file(framework / "translations" / "de.yaml", "lang: Deutsch\nview:\n  greeting: Hallo\n")
    return tmp_path


@pytest.fixture
def resolver(webapp_tree: Path) -> PathResolver:
    """Resolver over the framework and site layers of webapp_tree."""
    return PathResolver(webapp_tree / "webapp", webapp_tree / "site" / "webapp")


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def helpers() -> HelperRegistry:
    """Registry populated with all core helpers."""
    registry = HelperRegistry()
    register_core_helpers(registry)
    return registry


@pytest.fixture
def engine(helpers: HelperRegistry, resolver: PathResolver) -> HandlebarEngine:
    """Engine over webapp_tree with a shallow include limit."""
    return HandlebarEngine(helpers, resolver=resolver, max_include_depth=5)


@pytest.fixture
def render(engine: HandlebarEngine) -> Callable[..., Awaitable[str]]:
    """Expand a template: ``await render("{{a}}", {"a": 1})``."""

    async def _render(template: str, context: dict[str, Any] | None = None, request: RequestInfo | None = None) -> str:
        return await engine.expand_handlebars(request, template, context or {})

    return _render


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def app_config_data() -> dict[str, Any]:
    """Raw configuration mapping used by the application fixtures."""
    return {
        "app": {"name": "jPulse Test", "version": "9.9.9"},
        "paths": {"frameworkDir": "webapp", "siteDir": "site/webapp", "pluginsDir": "plugins"},
        "controller": {
            "handlebar": {
                "contextFilter": {
                    "withoutAuth": ["system"],
                    "alwaysAllow": ["system.defaultTheme"],
                },
                "maxIncludeDepth": 5,
                "cacheIncludes": {"enabled": False},
            }
        },
        "system": {"defaultTheme": "light", "serverId": "srv-42"},
        "utils": {"i18n": {"default": "en", "directory": "webapp/translations"}},
    }


@pytest.fixture
def app_config(app_config_data: dict[str, Any]) -> JPulseConfig:
    """Parsed configuration."""
    return ConfigLoader().load_from_dict(app_config_data)


@pytest.fixture
def application(webapp_tree: Path, app_config: JPulseConfig) -> JPulseApplication:
    """Initialized application rooted at webapp_tree."""
    return JPulseApplication(config=app_config, base_dir=webapp_tree, configure_logging=False).initialize()


@pytest.fixture
def anonymous() -> RequestInfo:
    """Request without a session user."""
    return RequestInfo(path="/index.shtml")


@pytest.fixture
def logged_in() -> RequestInfo:
    """Request with a session user."""
    return RequestInfo(
        path="/index.shtml",
        user={"id": "u1", "username": "jdoe", "firstName": "Jane", "lastName": "Doe", "roles": ["user"]},
    )
