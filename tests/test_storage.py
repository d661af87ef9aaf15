import threading

from lecture_assistant.models import LectureResult
from lecture_assistant.storage import LectureStore


def test_ids_start_at_one_and_increase():
    store = LectureStore()
    result = LectureResult(transcription="t", summary="s")

    first = store.add("a.wav", result)
    second = store.add("b.wav", result)

    assert (first.id, second.id) == (1, 2)
    assert store.get(2).file_name == "b.wav"
    assert store.get(3) is None
    assert len(store) == 2


def test_concurrent_adds_get_unique_ids():
    store = LectureStore()
    result = LectureResult(transcription="t", summary="s")
    ids = []

    def add_many():
        for _ in range(50):
            ids.append(store.add("x.wav", result).id)

    threads = [threading.Thread(target=add_many) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(ids) == list(range(1, 201))
