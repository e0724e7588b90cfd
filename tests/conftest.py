"""Shared fixtures for the schedule bot tests."""

import os
import tempfile

# Keep error logs and tournament files out of the working tree
_TEST_DATA_DIR = tempfile.mkdtemp(prefix="schedule-bot-tests-")
os.environ.setdefault("LOGS_DIR", os.path.join(_TEST_DATA_DIR, "logs"))
os.environ.setdefault("TOURNAMENTS_DIR", os.path.join(_TEST_DATA_DIR, "tournaments"))

import pytest  # noqa: E402
import pytz  # noqa: E402

from managers.schedule_manager import TournamentScheduler  # noqa: E402
from models.schedule import ScheduleManager  # noqa: E402
from tournament_manager import TournamentLifecycle  # noqa: E402
from utils.error_handling import CollaboratorFailure  # noqa: E402

MAIN_CHANNEL = 1001
ADMIN_CHANNEL = 2002

MOSCOW = pytz.timezone("Europe/Moscow")


class FakeMessenger:
    """Records every Discord call; operations listed in fail raise CollaboratorFailure"""

    def __init__(self):
        self.sent = []
        self.edited = []
        self.pinned = []
        self.unpinned = []
        self.fail = set()
        self._next_id = 500

    def _check(self, operation):
        if operation in self.fail:
            raise CollaboratorFailure(operation, "simulated failure")

    async def send_message(self, channel_id, text):
        self._check("send_message")
        self._next_id += 1
        self.sent.append((channel_id, text, None))
        return self._next_id

    async def send_message_with_controls(self, channel_id, text, view):
        self._check("send_message")
        self._next_id += 1
        self.sent.append((channel_id, text, view))
        return self._next_id

    async def edit_message(self, channel_id, message_id, text, view=None):
        self._check("edit_message")
        self.edited.append((channel_id, message_id, text, view))

    async def pin_message(self, channel_id, message_id):
        self._check("pin_message")
        self.pinned.append((channel_id, message_id))

    async def unpin_message(self, channel_id, message_id):
        self._check("unpin_message")
        self.unpinned.append((channel_id, message_id))


@pytest.fixture
def schedule():
    return ScheduleManager()


@pytest.fixture
def approved_schedule():
    manager = ScheduleManager()
    manager.init_week_schedule()
    manager.set_approved(True)
    return manager


@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def tournaments(tmp_path):
    return TournamentLifecycle(str(tmp_path / "tournaments"))


@pytest.fixture
def controls():
    return object()


@pytest.fixture
def scheduler(messenger, tournaments, schedule, controls):
    return TournamentScheduler(
        messenger=messenger,
        tournaments=tournaments,
        main_channel_id=MAIN_CHANNEL,
        admin_channel_id=ADMIN_CHANNEL,
        schedule=schedule,
        timezone=MOSCOW,
        controls_factory=lambda: controls,
    )
