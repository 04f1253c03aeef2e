import os
import tempfile
from pathlib import Path


def pytest_configure(config):
    """Point the application at a test settings.ini before demand_planning is imported.

    Log files are switched off so a test run leaves nothing in the working
    directory, and any local config/settings.ini is ignored.
    """
    if os.getenv('DEMAND_PLANNING_CONFIG'):
        return

    settings = Path(tempfile.mkdtemp(prefix='demand_planning_tests_')) / 'settings.ini'
    settings.write_text(
        "[LOGGING]\n"
        "file_output = False\n"
        "console_output = False\n"
    )
    os.environ['DEMAND_PLANNING_CONFIG'] = str(settings)
