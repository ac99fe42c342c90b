import pytest
from patchboard.client.edit_buffer import Debouncer, EditBuffer, ManualScheduler, new_patch


class RecordingPersist:
    def __init__(self):
        self.calls = []
        self.error = None

    def __call__(self, patches):
        if self.error:
            raise self.error
        self.calls.append(patches)
        return {'success': True, 'saved': len(patches)}


@pytest.fixture
def clock():
    return ManualScheduler()


@pytest.fixture
def persist():
    return RecordingPersist()


@pytest.fixture
def buffer(persist, clock):
    return EditBuffer(persist, scheduler=clock, delay=0.25)


def test_local_edits_apply_immediately(buffer, persist):
    patch_id = buffer.add_patch(x=10, y=10)
    buffer.move_patch(patch_id, 40, 50)

    assert buffer.patches[0]['x'] == 40 and buffer.patches[0]['y'] == 50
    assert persist.calls == []


def test_edits_within_window_produce_one_save(buffer, persist, clock):
    patch_id = buffer.add_patch()
    clock.advance(0.1)
    buffer.resize_patch(patch_id, 50, 60)
    clock.advance(0.2)
    buffer.recolor_patch(patch_id, color='#000000', opacity=0.9)

    clock.advance(0.2)
    assert persist.calls == []

    clock.advance(0.1)
    assert len(persist.calls) == 1
    saved = persist.calls[0][0]
    assert (saved['w'], saved['h'], saved['color'], saved['opacity']) == (50, 60, '#000000', 0.9)


def test_separate_bursts_save_separately(buffer, persist, clock):
    buffer.add_patch(patch_id='one')
    clock.advance(0.3)
    buffer.remove_patch('one')
    clock.advance(0.3)

    assert [len(call) for call in persist.calls] == [1, 0]
    assert buffer.last_result == {'success': True, 'saved': 0}


def test_update_of_unknown_patch_raises(buffer, clock):
    with pytest.raises(KeyError):
        buffer.update_patch('missing', x=1)
    assert clock.pending == 0


def test_empty_remote_push_is_ignored(buffer):
    buffer.add_patch(patch_id='mine')

    assert buffer.receive_remote([]) is False
    assert buffer.receive_remote(None) is False
    assert [p['id'] for p in buffer.patches] == ['mine']


def test_non_empty_remote_push_replaces_local(buffer, persist, clock):
    buffer.add_patch(patch_id='mine')
    remote = [new_patch(patch_id='theirs-1'), new_patch(patch_id='theirs-2')]

    assert buffer.receive_remote(remote) is True

    assert [p['id'] for p in buffer.patches] == ['theirs-1', 'theirs-2']
    clock.advance(1)
    # The save scheduled by the local edit sends the reconciled state
    assert [p['id'] for p in persist.calls[-1]] == ['theirs-1', 'theirs-2']


def test_remote_push_does_not_schedule_save(buffer, persist, clock):
    buffer.receive_remote([new_patch(patch_id='theirs')])
    clock.advance(1)

    assert persist.calls == []


def test_seed_prefers_local_then_cache_then_server(persist, clock):
    server = [new_patch(patch_id='server')]
    cached = [new_patch(patch_id='cached')]

    fresh = EditBuffer(persist, scheduler=clock)
    assert fresh.seed(server) is True
    assert [p['id'] for p in fresh.patches] == ['server']

    with_cache = EditBuffer(persist, scheduler=clock)
    with_cache.seed(server, cached=cached)
    assert [p['id'] for p in with_cache.patches] == ['cached']

    busy = EditBuffer(persist, scheduler=clock)
    busy.add_patch(patch_id='local')
    assert busy.seed(server, cached=cached) is False
    assert [p['id'] for p in busy.patches] == ['local']


def test_close_cancels_pending_save(buffer, persist, clock):
    buffer.add_patch()
    buffer.close()
    clock.advance(1)

    assert persist.calls == []
    with pytest.raises(RuntimeError):
        buffer.add_patch()
    assert buffer.receive_remote([new_patch()]) is False


def test_failed_save_is_retried_by_next_edit(buffer, persist, clock):
    persist.error = ConnectionError('offline')
    buffer.add_patch(patch_id='p')
    clock.advance(1)
    assert persist.calls == []

    persist.error = None
    buffer.move_patch('p', 1, 1)
    clock.advance(1)
    assert len(persist.calls) == 1


def test_result_of_save_in_flight_at_close_is_ignored(persist, clock):
    def logout_mid_save(patches):
        result = persist(patches)
        if patches:
            buffer.close()
        return result

    buffer = EditBuffer(logout_mid_save, scheduler=clock)
    buffer.flush_now()
    first = buffer.last_result
    buffer.add_patch()
    clock.advance(1)

    assert len(persist.calls) == 2
    assert buffer.last_result is first


def test_debouncer_keeps_only_latest_callback(clock):
    fired = []
    debouncer = Debouncer(clock, 0.5)
    debouncer.schedule(lambda: fired.append('first'))
    clock.advance(0.4)
    debouncer.schedule(lambda: fired.append('second'))
    clock.advance(0.4)
    assert fired == []

    clock.advance(0.2)
    assert fired == ['second']
