import pytest

pytest.importorskip("PySide6.QtMultimediaWidgets")

from PySide6.QtCore import QBuffer, QByteArray, QIODevice
from PySide6.QtGui import QColor, QImage

from core.errors import NetworkError
from core.history import HistoryAggregator
from core.models import InferenceResult
from core.playback import PlaybackSessionManager
from ui.pages.history_page import HistoryPage

from fakes import FakeClient

FRAME_URL = "http://service.test/uploads/frame_7.jpg"


def _png() -> bytes:
    image = QImage(8, 8, QImage.Format.Format_RGB32)
    image.fill(QColor("red"))
    data = QByteArray()
    buffer = QBuffer(data)
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    image.save(buffer, "PNG")
    buffer.close()
    return bytes(data)


def _page(client, runner) -> HistoryPage:
    aggregator = HistoryAggregator(client, runner)
    playback = PlaybackSessionManager(client.media_url)
    return HistoryPage(aggregator, playback, client, runner)


def _client(**kwargs) -> FakeClient:
    return FakeClient(
        listing=["fight.mp4", "calm.mp4", "gone.mp4"],
        lookups={
            "fight.mp4": InferenceResult("Fight", 0.9, "frame_7.jpg"),
            "calm.mp4": InferenceResult("No Fight", 0.2, "frame_9.jpg"),
            "gone.mp4": NetworkError("404"),
        },
        **kwargs,
    )


def test_fight_cards_show_their_anomalous_frame(runner):
    client = _client(frames={FRAME_URL: _png()})
    page = _page(client, runner)

    page.activate()

    cards = {card.record.filename: card for card in page._cards}
    assert list(cards) == ["fight.mp4", "calm.mp4", "gone.mp4"]
    assert cards["fight.mp4"].frame_shown
    assert not cards["calm.mp4"].frame_shown
    assert not cards["gone.mp4"].frame_shown
    assert client.fetched == [FRAME_URL]


def test_unavailable_frame_leaves_card_without_image(runner):
    client = _client(frames={FRAME_URL: NetworkError("500")})
    page = _page(client, runner)

    page.activate()

    assert [c.frame_shown for c in page._cards] == [False, False, False]


def test_frame_for_a_replaced_card_is_ignored(deferred):
    client = _client(frames={FRAME_URL: _png()})
    page = _page(client, deferred)

    page.activate()
    for _ in range(4):                 # listing, then the three lookups
        deferred.run()
    old_fight = page._cards[0]
    assert len(deferred) == 1          # its frame fetch is still queued
    assert not old_fight.frame_shown

    page.activate()
    deferred.run(0)                    # the frame for the first listing's card
    assert not old_fight.frame_shown

    deferred.run_all()
    assert page._cards[0] is not old_fight
    assert page._cards[0].frame_shown
