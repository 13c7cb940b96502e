from __future__ import annotations

import threading

from pdfcompose import HandoffSlot, NamedBuffer, PendingFile


def test_take_returns_item_once() -> None:
    slot: HandoffSlot[str] = HandoffSlot()
    slot.put("merged.pdf")

    assert slot.take() == "merged.pdf"
    assert slot.take() is None
    assert not slot


def test_put_replaces_waiting_item() -> None:
    slot: HandoffSlot[int] = HandoffSlot()
    slot.put(1)
    slot.put(2)

    assert slot.take() == 2


def test_peek_and_clear() -> None:
    slot: HandoffSlot[str] = HandoffSlot()
    slot.put("x")

    assert slot.peek() == "x"
    assert slot
    slot.clear()
    assert slot.peek() is None


def test_concurrent_take_delivers_at_most_once() -> None:
    slot: HandoffSlot[object] = HandoffSlot()
    item = object()
    slot.put(item)
    received: list[object] = []
    lock = threading.Lock()
    start = threading.Barrier(8)

    def consumer() -> None:
        start.wait()
        value = slot.take()
        if value is not None:
            with lock:
                received.append(value)

    threads = [threading.Thread(target=consumer) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert received == [item]


def test_pending_file_from_result() -> None:
    pending = PendingFile.from_result(NamedBuffer("merged.pdf", b"%PDF-1.7"), "merge")

    assert pending.file_name == "merged.pdf"
    assert pending.data == b"%PDF-1.7"
    assert pending.source_operation == "merge"


def test_pending_file_copies_buffer() -> None:
    buffer = bytearray(b"%PDF-1.7")
    pending = PendingFile(buffer, "out.pdf", "extract")  # type: ignore[arg-type]
    buffer[0:4] = b"XXXX"

    assert pending.data == b"%PDF-1.7"
