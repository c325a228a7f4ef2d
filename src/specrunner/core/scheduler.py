"""Sequential, cooperative execution of a spec tree.

The scheduler walks the tree depth first and runs one definer at a time on
the running asyncio loop. A definer completes through exactly one of three
paths (synchronous return, the ``done`` callback, or a returned awaitable),
and the first path to settle wins. Timeouts stop the wait without cancelling
the outstanding work; anything that work reports afterwards is discarded.
"""

import asyncio
import inspect
import logging
from contextvars import ContextVar
from typing import Any, Optional

from specrunner.core.models import Attempt, Result, TestStatus
from specrunner.core.tree import Definer, SpecNode, TestCase, join_context
from specrunner.errors import HookError, SpecRunnerError, TestTimeoutError

logger = logging.getLogger(__name__)

# Settles an attempt whose deadline passed.
_TIMED_OUT = object()


class Scheduler:
    """Runs every selected test of a spec tree and collects their results."""

    def __init__(
        self,
        root: SpecNode,
        default_timeout_ms: float,
        current: ContextVar[Optional[Attempt]],
    ):
        """Initialize the scheduler.

        Args:
            root: Root node of the tree to run
            default_timeout_ms: Timeout for nodes without a spec timeout
            current: Context variable that binds assertions to an attempt
        """
        self.root = root
        self.default_timeout_ms = default_timeout_ms
        self.exclusive = root.has_only()
        self._current_var = current

        self.running = False
        self.results: list[Result] = []

    async def run(self) -> list[Result]:
        """Run the tree and return the ordered result sequence."""
        if self.exclusive:
            logger.info("Exclusive mode: only tests marked with only() will run")

        self.running = True
        try:
            await self._run_node(self.root)
        finally:
            self.running = False

        logger.debug("Run finished with %d results", len(self.results))
        return self.results

    async def _run_node(self, node: SpecNode) -> None:
        children = node.selected_children(self.exclusive)
        if not children:
            return

        timeout_ms = node.effective_timeout(self.default_timeout_ms)
        aborted = False

        before = node.hook("before")
        if before is not None:
            attempt = await self._run_once_hook(node, "before", before, timeout_ms)
            aborted = attempt.test_error is not None

        if aborted:
            logger.warning("Skipping '%s': its before hook failed", node.path)
        else:
            for child in children:
                if isinstance(child, TestCase):
                    await self._run_test(child)
                else:
                    await self._run_node(child)

        after = node.hook("after")
        if after is not None:
            await self._run_once_hook(node, "after", after, timeout_ms)

    async def _run_once_hook(
        self, node: SpecNode, kind: str, definer: Definer, timeout_ms: float
    ) -> Attempt:
        attempt = Attempt(
            context=join_context(node.path, f"({kind})"),
            timeout_ms=timeout_ms,
            node=node,
            hook_kind=kind,
        )
        await self._execute(definer, attempt)
        self._flush([attempt])
        return attempt

    async def _run_test(self, test: TestCase) -> None:
        context = test.context
        chain = test.parent.ancestry
        attempts: list[Attempt] = []

        def hook_attempt(node: SpecNode, kind: str) -> Attempt:
            return Attempt(
                context=context,
                timeout_ms=node.effective_timeout(self.default_timeout_ms),
                test=test,
                node=node,
                hook_kind=kind,
            )

        logger.debug("Running test '%s'", context)

        setup_failed = False
        for node in chain:
            hook = node.hook("before_each")
            if hook is None:
                continue
            attempt = hook_attempt(node, "before_each")
            attempts.append(attempt)
            await self._execute(hook, attempt)
            if attempt.test_error is not None:
                setup_failed = True
                break

        if setup_failed:
            logger.warning("Skipping body of '%s': a before_each hook failed", context)
        else:
            body = Attempt(
                context=context,
                timeout_ms=test.parent.effective_timeout(self.default_timeout_ms),
                test=test,
                node=test.parent,
            )
            attempts.append(body)
            await self._execute(test.definer, body)

        for node in reversed(chain):
            hook = node.hook("after_each")
            if hook is None:
                continue
            attempt = hook_attempt(node, "after_each")
            attempts.append(attempt)
            await self._execute(hook, attempt)

        self._flush(attempts)

    async def _execute(self, definer: Definer, attempt: Attempt) -> None:
        """Run one definer to completion or timeout."""
        loop = asyncio.get_running_loop()
        settled: asyncio.Future = loop.create_future()
        arity = definer_arity(definer)
        timer: Optional[asyncio.TimerHandle] = None

        def settle(error: Any) -> None:
            if attempt.finished or settled.done():
                logger.debug("Ignoring repeated completion of '%s'", attempt.context)
                return
            settled.set_result(error)

        def done(error: Any = None) -> None:
            if attempt.finished or settled.done():
                logger.debug("Ignoring late completion of '%s'", attempt.context)
                return
            failure = None if error is None else as_exception(error)
            if _running_loop() is loop:
                settle(failure)
            else:
                loop.call_soon_threadsafe(settle, failure)

        def arm() -> None:
            nonlocal timer
            if timer is not None:
                timer.cancel()
            if not settled.done():
                deadline = attempt.started_at + attempt.timeout_ms / 1000
                timer = loop.call_at(deadline, settle, _TIMED_OUT)

        def rearm() -> None:
            if _running_loop() is loop:
                arm()
            else:
                loop.call_soon_threadsafe(arm)

        def on_awaitable_done(task: asyncio.Future) -> None:
            if task.cancelled():
                settle(asyncio.CancelledError(f"'{attempt.context}' was cancelled"))
            else:
                settle(task.exception())

        attempt.status = TestStatus.RUNNING
        attempt.started_at = loop.time()
        attempt.rearm = rearm

        token = self._current_var.set(attempt)
        try:
            if arity == 0:
                returned = definer()
            elif arity == 1:
                returned = definer(done)
            else:
                returned = definer(done, attempt.change_timeout)
        except Exception as e:
            settle(e)
        else:
            if inspect.isawaitable(returned):
                # The task copies the current context, so it stays bound to
                # this attempt.
                task = asyncio.ensure_future(returned)
                task.add_done_callback(on_awaitable_done)
            elif arity == 0:
                settle(None)
        finally:
            self._current_var.reset(token)

        arm()
        try:
            outcome = await settled
        finally:
            attempt.rearm = None
            if timer is not None:
                timer.cancel()

        if outcome is _TIMED_OUT:
            logger.warning("'%s' timed out after %gms", attempt.context, attempt.timeout_ms)
            self._finish(
                attempt,
                TestTimeoutError(attempt.timeout_ms, attempt.context),
                TestStatus.TIMED_OUT,
            )
        else:
            self._finish(attempt, outcome)

    def _finish(
        self,
        attempt: Attempt,
        error: Optional[BaseException],
        status: TestStatus = TestStatus.FAILED,
    ) -> None:
        if error is None:
            failed = any(result.failed for result in attempt.results)
            attempt.status = TestStatus.FAILED if failed else TestStatus.PASSED
            return

        attempt.status = status
        if attempt.is_hook:
            hook_error = HookError(attempt.hook_kind or "", attempt.context, error)
            hook_error.__cause__ = error
            logger.warning("%s", hook_error)
            attempt.test_error = hook_error
        else:
            logger.debug("'%s' failed: %s", attempt.context, error)
            attempt.test_error = error

        attempt.record(
            Result(
                passed=False,
                context=attempt.context,
                message=str(attempt.test_error) or type(attempt.test_error).__name__,
                test_error=attempt.test_error,
            )
        )

    def _flush(self, attempts: list[Attempt]) -> None:
        for attempt in attempts:
            self.results.extend(attempt.results)
            attempt.outcome = attempt.status
            attempt.status = TestStatus.REPORTED


def definer_arity(definer: Definer) -> int:
    """Number of callbacks a definer accepts: 0, 1 (done) or 2 (done, timeout)."""
    try:
        signature = inspect.signature(definer)
    except (TypeError, ValueError):
        return 0

    count = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return 2
        if (
            param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
            and param.default is inspect.Parameter.empty
        ):
            count += 1
    return min(count, 2)


def as_exception(error: Any) -> BaseException:
    """Coerce a value passed to ``done`` into an exception."""
    if isinstance(error, BaseException):
        return error
    return SpecRunnerError(str(error))


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
