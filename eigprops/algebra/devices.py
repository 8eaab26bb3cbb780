"""
Accelerator device pool.

A fixed-size pool of compute devices with exclusive lease/release. Heavy
numeric paths (e.g. Green's function summation) lease a device right before a
parallel section and release it right after, on every exit path.

    >>> pool = DevicePool(num_devices=2)
    >>> with pool.lease() as device:
    ...     run_on(device)

The process-wide pool is created lazily by `get_device_pool()`; its size is
probed once through JAX. A failed probe gives an empty pool, which only
becomes an error when somebody asks for a device.

file        : eigprops/algebra/devices.py
"""

import os
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

from .utils import probe_device_count
from ..common.flog import get_global_logger
from ..common.errors import PropertyError, PropertyErrorMsg

log = get_global_logger()

# ---------------------------------------------------------------------
#! Pool
# ---------------------------------------------------------------------

class DevicePool:
    """
    Pool of `num_devices` devices identified by integers `0..num_devices-1`.

    `allocate` blocks on a condition variable until a device is free; the
    busy flags are only read or written while holding the pool lock, so a
    device is never handed to two callers at once.

    Args:
        num_devices (int, optional):
            Pool size. If None, the number of accelerator devices is probed.
    """

    def __init__(self, num_devices: Optional[int] = None):
        if num_devices is None:
            num_devices = probe_device_count()
        if num_devices < 0:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"DevicePool(): num_devices must be non-negative, got {num_devices}.")
        self._busy  : List[bool]    = [False] * num_devices
        self._cond                  = threading.Condition(threading.Lock())

    # -----------------------------------------------------------------

    @property
    def size(self) -> int:
        return len(self._busy)

    @property
    def num_free(self) -> int:
        with self._cond:
            return self._busy.count(False)

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        return f"DevicePool(size={self.size}, free={self.num_free})"

    # -----------------------------------------------------------------

    def allocate(self) -> int:
        """
        Lease a free device, blocking until one is available.

        Returns
        -------
        int
            The leased device id.

        Raises
        ------
        PropertyError
            NO_DEVICES if the pool is empty.
        """
        if self.size == 0:
            raise PropertyError(PropertyErrorMsg.NO_DEVICES,
                    "DevicePool.allocate(): no accelerator devices available on this machine. Use the CPU path instead.")
        with self._cond:
            while True:
                for device, busy in enumerate(self._busy):
                    if not busy:
                        self._busy[device] = True
                        log.debug(f"Leased device {device}", lvl=2)
                        return device
                self._cond.wait()

    def free(self, device: int) -> None:
        """
        Return `device` to the pool and wake one waiting caller.
        """
        if not 0 <= device < self.size:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"DevicePool.free(): device id {device} outside [0, {self.size}).")
        with self._cond:
            self._busy[device] = False
            self._cond.notify()
        log.debug(f"Released device {device}", lvl=2)

    @contextmanager
    def lease(self) -> Iterator[int]:
        """
        Context manager around `allocate` / `free`.
        """
        device = self.allocate()
        try:
            yield device
        finally:
            self.free(device)

# ---------------------------------------------------------------------
#! Process-wide pool
# ---------------------------------------------------------------------

_G_POOL     : Optional[DevicePool]  = None
_G_POOL_PID : Optional[int]         = None
_G_LOCK                             = threading.Lock()

def get_device_pool() -> DevicePool:
    """
    The process-wide DevicePool, sized by probing once at first use.
    """
    global _G_POOL, _G_POOL_PID
    pid = os.getpid()
    if _G_POOL is not None and _G_POOL_PID == pid:
        return _G_POOL

    with _G_LOCK:
        if _G_POOL is None or _G_POOL_PID != pid:
            _G_POOL     = DevicePool()
            _G_POOL_PID = pid
            log.debug(f"Device pool initialized with {_G_POOL.size} device(s).")
        return _G_POOL

# ---------------------------------------------------------------------
#! EOF
# ---------------------------------------------------------------------
