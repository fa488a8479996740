"""
Shared test configuration for Scrapely.

Provides sample documents and fixtures for building clients against the
scripted in-memory transport in ``tests.helpers``.
"""

# Third-party imports
import pytest

# Local imports
from scrapely.config.config import FetchConfig
from tests.helpers import RecordingSleep

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests across modules")


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fast_config() -> FetchConfig:
    """Fetch settings with no backoff so retry tests run instantly."""
    return FetchConfig(max_retries=3, retry_delay=0)


# ============================================================================
# Sample Documents
# ============================================================================


@pytest.fixture
def sample_html():
    """A small product catalog page."""
    return """
    <!DOCTYPE html>
    <html>
    <head><title>Catalog</title></head>
    <body>
        <h1 class="title">  Spring Catalog  </h1>
        <div class="intro"><p>Hello <b>world</b></p></div>
        <ul class="products">
            <li class="product"><h2>Lamp</h2><span class="price">$19.99</span><a href="/p/lamp">view</a></li>
            <li class="product"><h2>Chair</h2><span class="price">$45.00</span><a href="/p/chair">view</a></li>
            <li class="product"><h2>Desk</h2><a href="/p/desk">view</a></li>
        </ul>
        <a href="https://other.example/about" title="About">About us</a>
        <a href="/p/lamp">Lamp again</a>
        <p>Contact: sales@shop.example or support@shop.example, call +1 555-123-4567</p>
    </body>
    </html>
    """


@pytest.fixture
def table_html():
    return """
    <html><body>
        <table id="prices">
            <thead><tr><th>Name</th><th>Price</th></tr></thead>
            <tbody>
                <tr><td>Lamp</td><td>19.99</td></tr>
                <tr><td>Chair</td><td>45.00</td></tr>
            </tbody>
        </table>
        <table id="bare">
            <tr><td>a</td><td>b</td></tr>
            <tr><td>c</td><td>d</td></tr>
        </table>
    </body></html>
    """


@pytest.fixture
def form_html():
    return """
    <html><body>
        <form action="/search" method="post">
            <input type="text" name="q" value="lamps" placeholder="Search" required>
            <select name="sort">
                <option value="price">Price</option>
                <option value="name" selected>Name</option>
            </select>
            <textarea name="notes">bright</textarea>
        </form>
    </body></html>
    """
