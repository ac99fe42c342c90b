# patchboard/client/edit_buffer.py
"""Client-side patch buffer: optimistic edits, debounced saves, remote reconciliation.

Local edits land immediately. Each edit (re)starts a single debounce timer; when it
fires the current patch list is handed to ``persist``. Pushes from other sessions
replace the local list wholesale unless they are empty.
"""
import copy
import heapq
import itertools
import threading
import uuid
from patchboard.logging_config import setup_logging

logger = setup_logging()

DEFAULT_DEBOUNCE_SECONDS = 0.25


class ThreadingScheduler:
    """Wall-clock scheduler backed by ``threading.Timer``."""

    def call_later(self, delay, callback):
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class _ManualHandle:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Virtual clock: callbacks only run when ``advance`` moves time past them."""

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._counter = itertools.count()

    def call_later(self, delay, callback):
        handle = _ManualHandle(self.now + delay, callback)
        heapq.heappush(self._queue, (handle.when, next(self._counter), handle))
        return handle

    @property
    def pending(self):
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def advance(self, seconds):
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            self.now = when
            if not handle.cancelled:
                handle.callback()
        self.now = target


class Debouncer:
    """Holds at most one pending call; ``schedule`` cancels and replaces it."""

    def __init__(self, scheduler, delay):
        self.scheduler = scheduler
        self.delay = delay
        self._handle = None
        self._lock = threading.Lock()

    def schedule(self, callback):
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
            self._handle = self.scheduler.call_later(self.delay, callback)

    def cancel(self):
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None


def new_patch(x=35, y=35, w=30, h=20, color='#ef4444', opacity=0.4, patch_id=None):
    return {'id': patch_id or str(uuid.uuid4()), 'x': x, 'y': y, 'w': w, 'h': h, 'color': color, 'opacity': opacity}


class EditBuffer:
    def __init__(self, persist, scheduler=None, delay=DEFAULT_DEBOUNCE_SECONDS):
        self.persist = persist
        self.debouncer = Debouncer(scheduler or ThreadingScheduler(), delay)
        self._patches = []
        self._generation = 0
        self._lock = threading.RLock()
        self._persist_lock = threading.Lock()
        self.closed = False
        self.last_result = None

    @property
    def patches(self):
        with self._lock:
            return copy.deepcopy(self._patches)

    # Initial load

    def seed(self, server_patches, cached=None):
        """Fill an empty buffer from the local cache, else from the server."""
        with self._lock:
            if self._patches:
                return False
            for source in (cached, server_patches):
                if isinstance(source, list) and source:
                    self._patches = copy.deepcopy(source)
                    return True
            return False

    # Local edits

    def _mutate(self, change):
        with self._lock:
            if self.closed:
                raise RuntimeError('Edit buffer is closed')
            change(self._patches)
        self.debouncer.schedule(self._flush)

    def replace(self, patches):
        def change(current):
            current[:] = copy.deepcopy(patches)
        self._mutate(change)

    def add_patch(self, patch=None, **fields):
        patch = dict(patch) if patch else new_patch(**fields)
        self._mutate(lambda current: current.append(patch))
        return patch['id']

    def update_patch(self, patch_id, **changes):
        def change(current):
            for patch in current:
                if patch.get('id') == patch_id:
                    patch.update(changes)
                    return
            raise KeyError(patch_id)
        self._mutate(change)

    def move_patch(self, patch_id, x, y):
        self.update_patch(patch_id, x=x, y=y)

    def resize_patch(self, patch_id, w, h):
        self.update_patch(patch_id, w=w, h=h)

    def recolor_patch(self, patch_id, color=None, opacity=None):
        changes = {}
        if color is not None:
            changes['color'] = color
        if opacity is not None:
            changes['opacity'] = opacity
        self.update_patch(patch_id, **changes)

    def remove_patch(self, patch_id):
        def change(current):
            current[:] = [p for p in current if p.get('id') != patch_id]
        self._mutate(change)

    # Persistence

    def _flush(self):
        # One save at a time, each sending the state current when it starts
        with self._persist_lock:
            with self._lock:
                if self.closed:
                    return
                self._generation += 1
                generation = self._generation
                snapshot = copy.deepcopy(self._patches)
            try:
                result = self.persist(snapshot)
            except Exception as e:
                # Saves fire on every drag pause; a failed one is retried by the next edit
                logger.warning(f"Saving patches failed: {e}")
                return
        self._accept_result(generation, result)

    def _accept_result(self, generation, result):
        with self._lock:
            if generation != self._generation or self.closed:
                return False
            self.last_result = result
            return True

    def flush_now(self):
        self.debouncer.cancel()
        self._flush()

    # Remote pushes

    def receive_remote(self, patches):
        """Apply a fan-out push. Empty lists are treated as not-yet-initialised."""
        if not isinstance(patches, list) or not patches:
            return False
        with self._lock:
            if self.closed:
                return False
            self._patches = copy.deepcopy(patches)
        return True

    def close(self):
        with self._lock:
            self.closed = True
            # Anything still running belongs to a discarded session
            self._generation += 1
        self.debouncer.cancel()
