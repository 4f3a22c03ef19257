# careerform/stepper.py
from __future__ import annotations
import asyncio
import logging
from enum import Enum, auto
from typing import Any
from collections.abc import Awaitable, Callable

from .config import SUBMIT_TIMEOUT_SECONDS
from .form_schema import Form, FormField
from .steps import Step, split_steps, clamp_step_index
from .validation import validate_fields
from .submission import (
    FileReference, SubmissionError, SubmissionPayload, UploadedFile,
    to_labeled_submission,
)

logger = logging.getLogger(__name__)

SubmitHandler = Callable[[SubmissionPayload], Awaitable[Any]]
Uploader = Callable[[UploadedFile], Awaitable[FileReference]]

GENERIC_SUBMIT_ERROR: str = "Something went wrong. Please try again."
TIMEOUT_SUBMIT_ERROR: str = "The submission timed out. Please try again."
NOT_LAST_STEP_ERROR: str = "Please complete the remaining steps before submitting."
NO_FIELDS_MESSAGE: str = "No fields configured for this form."

def _log_abandoned(task: asyncio.Future[Any]) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.warning(f"Timed-out submission finished later with: {task.exception()}")

class StepperStatus(Enum):
    EDITING = auto()
    SUBMITTING = auto()
    SUBMITTED = auto()

class ApplicationStepper:
    """
    Owns the ValueMap for one applicant session and walks it through the
    form's steps. Navigation never touches the network; only submit() does.
    Validation problems are kept in `error` for the page to render.
    """

    def __init__(
        self,
        form: Form,
        submit_handler: SubmitHandler,
        job_id: str,
        initial_step: int = 0,
        submit_timeout: float | None = SUBMIT_TIMEOUT_SECONDS,
        uploader: Uploader | None = None,
        on_step_change: Callable[[int], None] | None = None,
    ) -> None:
        self.form = form
        self.job_id = job_id
        self.submit_handler = submit_handler
        self.submit_timeout = submit_timeout
        self.uploader = uploader
        self.on_step_change = on_step_change
        self.values: dict[str, Any] = {}
        self.error: str | None = None
        self.status: StepperStatus = StepperStatus.EDITING
        self.step_index: int = clamp_step_index(initial_step, self.step_count)

    # --- Derived state ---
    @property
    def steps(self) -> list[Step]:
        # Recomputed on every access; the form may have been edited.
        return split_steps(self.form.fields)

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def current_fields(self) -> Step:
        steps = self.steps
        if not steps:
            return []
        return steps[clamp_step_index(self.step_index, len(steps))]

    @property
    def is_first(self) -> bool:
        return self.step_index == 0

    @property
    def is_last(self) -> bool:
        return self.step_index >= self.step_count - 1

    @property
    def is_submitting(self) -> bool:
        return self.status is StepperStatus.SUBMITTING

    @property
    def is_submitted(self) -> bool:
        return self.status is StepperStatus.SUBMITTED

    @property
    def progress_label(self) -> str:
        return f"Step {self.step_index + 1} of {self.step_count}"

    # --- ValueMap access ---
    def get_value(self, f: FormField) -> Any:
        value = self.values.get(f.key)
        if value is None:
            return [] if f.is_list_valued else ''
        return value

    def set_value(self, f: FormField, value: Any) -> None:
        self.values[f.key] = value

    # --- Navigation ---
    def validate_current_step(self) -> str | None:
        return validate_fields(self.current_fields, self.values)

    def _move_to(self, index: int) -> None:
        new_index = clamp_step_index(index, self.step_count)
        if new_index != self.step_index:
            self.step_index = new_index
            if self.on_step_change:
                self.on_step_change(new_index)

    def go_next(self) -> bool:
        error = self.validate_current_step()
        if error:
            self.error = error
            return False
        self.error = None
        self._move_to(self.step_index + 1)
        return True

    def go_prev(self) -> None:
        self.error = None
        self._move_to(self.step_index - 1)

    # --- Submission ---
    async def _resolve_uploads(self) -> None:
        # Stored files replace their handles so a retry never uploads twice.
        for key, value in list(self.values.items()):
            if not isinstance(value, UploadedFile):
                continue
            if self.uploader is None:
                raise SubmissionError(f"No uploader configured for file '{value.name}'.")
            reference = await self.uploader(value)
            if not isinstance(reference, FileReference):
                raise SubmissionError(f"Upload of '{value.name}' did not complete.")
            self.values[key] = reference

    async def _deliver(self) -> None:
        await self._resolve_uploads()
        labeled = to_labeled_submission(self.values, self.form.fields)
        payload = SubmissionPayload.from_labeled(self.job_id, self.form.id, labeled)
        await self.submit_handler(payload)

    async def _send(self) -> None:
        """Runs uploads and the submit handler under one deadline."""
        if self.submit_timeout is None:
            await self._deliver()
            return
        # Handlers built on run.io_bound swallow cancellation, so the deadline
        # is checked here instead of relying on wait_for.
        task = asyncio.ensure_future(self._deliver())
        done, _ = await asyncio.wait({task}, timeout=self.submit_timeout)
        if not done:
            task.cancel()
            task.add_done_callback(_log_abandoned)
            raise asyncio.TimeoutError()
        task.result()

    async def submit(self) -> bool:
        """
        Validates the last step and hands the labeled submission to the
        submit handler exactly once. Returns True on success. Calls made
        while a submission is in flight (or after success) are ignored.
        """
        if self.status is not StepperStatus.EDITING:
            logger.info(f"Ignoring submit for job '{self.job_id}' while {self.status.name.lower()}.")
            return False
        if self.step_count == 0:
            self.error = NO_FIELDS_MESSAGE
            return False
        if not self.is_last:
            self.error = NOT_LAST_STEP_ERROR
            return False
        error = self.validate_current_step()
        if error:
            self.error = error
            return False

        self.status = StepperStatus.SUBMITTING
        self.error = None
        logger.info(f"Submitting application for job '{self.job_id}' (form '{self.form.id}').")
        try:
            await self._send()
        except SubmissionError as e:
            logger.warning(f"Application submission rejected for job '{self.job_id}': {e}")
            self.error = str(e) or GENERIC_SUBMIT_ERROR
        except asyncio.TimeoutError:
            logger.warning(f"Application submission timed out for job '{self.job_id}'.")
            self.error = TIMEOUT_SUBMIT_ERROR
        except Exception as e:
            logger.error(f"Application submission failed for job '{self.job_id}': {e}", exc_info=True)
            self.error = GENERIC_SUBMIT_ERROR
        else:
            self.status = StepperStatus.SUBMITTED
            logger.info(f"Application for job '{self.job_id}' submitted.")
            return True

        self.status = StepperStatus.EDITING
        self.step_index = clamp_step_index(self.step_count - 1, self.step_count)
        return False
