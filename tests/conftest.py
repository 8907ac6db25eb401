"""Cau hinh pytest chung: Qt chay offscreen, fixture session dung simple engine."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from core.tokenization.engine import SimpleTokenizerEngine


@pytest.fixture
def make_session(qtbot):
    """Factory tao TokenizationSession voi simple engine va debounce ngan."""
    from services.tokenization_session import TokenizationSession

    created = []

    def _make(**kwargs):
        kwargs.setdefault("engine", SimpleTokenizerEngine())
        kwargs.setdefault("debounce_ms", 20)
        session = TokenizationSession(**kwargs)
        created.append(session)
        return session

    yield _make

    for session in created:
        session.dispose()
        # Cho worker dang chay xong truoc khi QApplication bi teardown
        qtbot.waitUntil(lambda s=session: not s.is_busy, timeout=5000)
