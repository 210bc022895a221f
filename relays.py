# relays.py
from __future__ import annotations

import logging
import queue
import threading
from pathlib import Path
from typing import BinaryIO, Optional

from rotation_executor import RotationSettings, maybe_rotate
from rotator_errors import ChannelError, FilesystemError, IoError, RotatorError

log = logging.getLogger("rotator.relay")

_CLOSE = None  # chunk channel end marker


class Hangup:
    """ack 채널에 올라가는 '상대 relay 종료' 표시."""

    def __init__(self, peer: str, error: Optional[BaseException] = None):
        self.peer = peer
        self.error = error


# -------------------------
# channels
# -------------------------
class ChunkChannel:
    """
    ingest -> relay 단방향 채널 (unbounded).
    - send: receiver 가 이미 끝났으면 ChannelError
    - close: 끝 표시(_CLOSE)를 넣는다. 이후 send 는 불가
    """

    def __init__(self, name: str):
        self.name = name
        self._q: "queue.Queue[Optional[bytes]]" = queue.Queue()
        self._receiver_gone = threading.Event()
        self._closed = False

    def send(self, chunk: bytes) -> None:
        if self._closed:
            raise ChannelError("send chunk on closed channel", self.name)
        if self._receiver_gone.is_set():
            raise ChannelError("send chunk, receiver has terminated", self.name)
        self._q.put(bytes(chunk))

    def recv(self) -> Optional[bytes]:
        """blocking. None == channel closed."""
        return self._q.get()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._q.put(_CLOSE)

    def detach_receiver(self) -> None:
        self._receiver_gone.set()

    @property
    def receiver_gone(self) -> bool:
        return self._receiver_gone.is_set()


class AckChannel:
    """relay(2개) -> ingest 공용 acknowledgment 채널."""

    def __init__(self, name: str = "acks"):
        self.name = name
        self._q: "queue.Queue[object]" = queue.Queue()

    def ack(self) -> None:
        self._q.put(True)

    def hangup(self, peer: str, error: Optional[BaseException] = None) -> None:
        self._q.put(Hangup(peer, error))

    def recv(self, which: str) -> None:
        item = self._q.get()
        if isinstance(item, Hangup):
            raise ChannelError(f"receive {which} acknowledgment", item.peer, item.error)


# -------------------------
# relays
# -------------------------
class Relay(threading.Thread):
    """
    공통 consumer 루프:
      recv chunk -> handle -> ack  (channel close 까지 반복)
    handle 실패 시 로그 남기고 루프 종료, error 기록, hangup 통지.
    """

    def __init__(self, name: str, inbox: ChunkChannel, acks: AckChannel):
        super().__init__(name=name, daemon=True)
        self.inbox = inbox
        self.acks = acks
        self.error: Optional[RotatorError] = None
        self.chunks = 0
        self.bytes = 0

    def handle(self, chunk: bytes) -> None:
        raise NotImplementedError

    def cleanup(self) -> None:
        pass

    def run(self) -> None:
        try:
            while True:
                chunk = self.inbox.recv()
                if chunk is _CLOSE:
                    break
                self.handle(chunk)
                self.chunks += 1
                self.bytes += len(chunk)
                self.acks.ack()
        except RotatorError as e:
            self._fail(e)
        except Exception as e:
            self._fail(IoError(f"{self.name} relay", None, e))
        finally:
            try:
                self.cleanup()
            except RotatorError as e:
                if self.error is None:
                    self._fail(e)
                else:
                    log.error("%s cleanup failed: %s", self.name, e)

    def _fail(self, error: RotatorError) -> None:
        log.error("%s relay stopped: %s", self.name, error)
        self.error = error
        self.inbox.detach_receiver()
        self.acks.hangup(self.name, error)


class StdoutRelay(Relay):
    def __init__(self, inbox: ChunkChannel, acks: AckChannel, sink: BinaryIO):
        super().__init__("stdout", inbox, acks)
        self.sink = sink

    def handle(self, chunk: bytes) -> None:
        try:
            self.sink.write(chunk)
            self.sink.flush()
        except (OSError, ValueError) as e:
            raise IoError("write chunk to stdout", None, e) from e

    def cleanup(self) -> None:
        try:
            self.sink.flush()
        except (OSError, ValueError) as e:
            raise IoError("flush stdout", None, e) from e


class FileRelay(Relay):
    """live file 의 유일한 소유자. write -> flush -> maybe_rotate."""

    def __init__(self, inbox: ChunkChannel, acks: AckChannel, live: BinaryIO, settings: RotationSettings):
        super().__init__("file", inbox, acks)
        self.live = live
        self.settings = settings
        self.rotations = 0

    def handle(self, chunk: bytes) -> None:
        try:
            self.live.write(chunk)
            self.live.flush()
        except OSError as e:
            raise IoError("append chunk to live file", self.settings.output_path, e) from e
        archived = maybe_rotate(self.live, self.settings)
        if archived is not None:
            self.rotations += 1

    def cleanup(self) -> None:
        try:
            self.live.flush()
            self.live.close()
        except OSError as e:
            raise IoError("flush live file", self.settings.output_path, e) from e


def open_live_file(output_path: Path) -> BinaryIO:
    """create if absent + truncate to zero, read/write binary."""
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        return output_path.open("w+b")
    except OSError as e:
        raise FilesystemError("open live file", output_path, e) from e


__all__ = [
    "ChunkChannel",
    "AckChannel",
    "Hangup",
    "Relay",
    "StdoutRelay",
    "FileRelay",
    "open_live_file",
]
