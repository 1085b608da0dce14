"""Mount orchestration for a bootloader install.

The scratch mountpoint owns everything mounted during a run: the root
partition, the /sys /proc /dev binds and the ESP all live beneath it, so a
single recursive unmount of the scratch mountpoint tears the whole plan down
no matter how far the run got.
"""
from __future__ import annotations

import atexit
import logging
import signal
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .errors import AlreadyMountedError, CommandError, TerminatedError
from .lib.chroot import is_mounted, umount_recursive
from .pipeline import Step, run_pipeline
from .plan import InstallContext, InstallRequest, MountEntry, MountState
from .steps import BindSystemStep, InstallBootloaderStep, MountEspStep, MountRootStep

logger = logging.getLogger(__name__)

GUARDED_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGHUP", "SIGQUIT") if hasattr(signal, name)
)


def build_steps() -> List[Step]:
    return [
        MountRootStep(),
        BindSystemStep(),
        MountEspStep(),
        InstallBootloaderStep(),
    ]


@dataclass(frozen=True)
class InstallResult:
    ran_steps: List[str]
    plan: List[MountEntry]
    state: MountState
    cleaned: bool


def unmount_scratch(mountpoint: str, *, mounted: bool, dry_run: bool = False) -> bool:
    """Recursively unmount mountpoint if it is mounted.

    Failures are logged and reported through the return value; the unmount
    is never retried.
    """

    if not mounted:
        logger.debug("%s is not mounted, nothing to clean", mountpoint)
        return True
    try:
        umount_recursive(mountpoint, dry_run=dry_run)
    except CommandError as e:
        logger.error("Failed to unmount %s: %s", mountpoint, e)
        return False
    logger.info("Unmounted %s", mountpoint)
    return True


def clean_only(mountpoint: str, *, dry_run: bool = False) -> bool:
    return unmount_scratch(mountpoint, mounted=is_mounted(mountpoint), dry_run=dry_run)


class CleanupGuard:
    """Keep a cleanup callable armed for normal exit, errors and termination signals.

    Signals are turned into TerminatedError so the interrupted code unwinds
    through its own error path; those two give the guarantee. Leaving the
    block always disarms the atexit hook, so it only fires for a run still in
    progress at interpreter shutdown, i.e. on a daemon thread, where no
    signal handler can be installed. os._exit skips it entirely.
    """

    def __init__(self, cleanup: Callable[[], object], signals: Sequence[int] = GUARDED_SIGNALS):
        self.cleanup = cleanup
        self.signals = tuple(signals)
        self._previous = {}
        self.armed = False

    def _on_signal(self, signum, frame):
        raise TerminatedError(signum)

    def _at_exit(self) -> None:
        self.cleanup()

    def arm(self) -> None:
        atexit.register(self._at_exit)
        for sig in self.signals:
            try:
                self._previous[sig] = signal.signal(sig, self._on_signal)
            except ValueError:
                # Not in the main thread; only the error path and atexit apply.
                logger.debug("Cannot install handler for signal %s", sig)
        self.armed = True

    def disarm(self) -> None:
        atexit.unregister(self._at_exit)
        for sig, prev in self._previous.items():
            signal.signal(sig, prev)
        self._previous.clear()
        self.armed = False

    def __enter__(self) -> "CleanupGuard":
        self.arm()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disarm()


class MountOrchestrator:
    def __init__(self, request: InstallRequest, steps: Optional[Sequence[Step]] = None):
        self.request = request
        self.steps = list(steps) if steps is not None else build_steps()
        self.ctx = InstallContext(request)

    def _scratch_mounted(self) -> bool:
        if self.request.dry_run:
            # Nothing was really mounted; follow what the run would have done.
            return self.ctx.holds_mounts
        return is_mounted(self.request.mountpoint)

    def cleanup(self) -> bool:
        req = self.request
        if req.no_clean:
            logger.info("Leaving %s mounted (no-clean)", req.mountpoint)
            return True
        ok = unmount_scratch(req.mountpoint, mounted=self._scratch_mounted(), dry_run=req.dry_run)
        if ok and self.ctx.holds_mounts:
            self.ctx.state = MountState.UNMOUNTED
        return ok

    def run(self) -> InstallResult:
        req = self.request
        if is_mounted(req.mountpoint):
            raise AlreadyMountedError(f"{req.mountpoint} is already mounted; run with --clean-only first")

        with CleanupGuard(self.cleanup):
            try:
                result = run_pipeline(ctx=self.ctx, steps=self.steps)
            except BaseException:
                logger.error("Install failed (reached %s); cleaning up %s", self.ctx.state.name, req.mountpoint)
                self.cleanup()
                raise
            try:
                cleaned = self.cleanup()
            except BaseException:
                logger.error("Cleanup interrupted; %s may still be mounted", req.mountpoint)
                raise

        logger.info("Install finished: %s", ", ".join(result.ran_steps))
        return InstallResult(
            ran_steps=result.ran_steps,
            plan=list(self.ctx.plan),
            state=self.ctx.state,
            cleaned=cleaned,
        )
