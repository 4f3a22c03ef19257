# tests/test_stepper.py
from __future__ import annotations

import sys
import asyncio
from pathlib import Path

# Make the `careerform` directory importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from careerform.form_schema import Form, FormField
from careerform.stepper import (
    ApplicationStepper, StepperStatus,
    GENERIC_SUBMIT_ERROR, TIMEOUT_SUBMIT_ERROR, NOT_LAST_STEP_ERROR, NO_FIELDS_MESSAGE,
)
from careerform.submission import FileReference, SubmissionError, SubmissionPayload, UploadedFile

# --- Test Fixtures ---
NAME = FormField(id='f1', field_type='TEXT', label='Full Name', field_name='fullName', is_required=True, order=0)
EMAIL = FormField(id='f2', field_type='EMAIL', label='Email Address', field_name='email', is_required=True, order=1)
BREAK_1 = FormField(id='b1', field_type='PAGE_BREAK', label='Experience', order=2)
SKILLS = FormField(id='f3', field_type='SKILLS', label='Skills', field_name='skills', order=3)
WORK_MODE = FormField(id='f4', field_type='CHECKBOX', label='Work Mode', field_name='workMode', order=4)
BREAK_2 = FormField(id='b2', field_type='PAGE_BREAK', label='Documents', order=5)
RESUME = FormField(id='f5', field_type='FILE', label='Resume Upload', field_name='resume', order=6)

def _form(*fields: FormField) -> Form:
    return Form(id='form-1', name='Application', fields=list(fields))

def _three_step_form() -> Form:
    return _form(NAME, EMAIL, BREAK_1, SKILLS, WORK_MODE, BREAK_2, RESUME)

class RecordingHandler:
    """Collects every payload handed to the submit endpoint."""
    def __init__(self, error: Exception | None = None) -> None:
        self.payloads: list[SubmissionPayload] = []
        self.error = error

    async def __call__(self, payload: SubmissionPayload) -> None:
        self.payloads.append(payload)
        if self.error:
            raise self.error

def _fill_first_step(stepper: ApplicationStepper) -> None:
    stepper.set_value(NAME, 'Ada Lovelace')
    stepper.set_value(EMAIL, 'ada@example.com')

# ===================================================================
# NAVIGATION
# ===================================================================

def test_initial_state() -> None:
    stepper = ApplicationStepper(_three_step_form(), RecordingHandler(), 'job-1')
    assert stepper.step_count == 3
    assert stepper.step_index == 0
    assert stepper.is_first and not stepper.is_last
    assert stepper.progress_label == "Step 1 of 3"
    assert [f.id for f in stepper.current_fields] == ['f1', 'f2']

def test_initial_step_is_clamped() -> None:
    stepper = ApplicationStepper(_three_step_form(), RecordingHandler(), 'job-1', initial_step=99)
    assert stepper.step_index == 2
    assert stepper.is_last

def test_required_field_blocks_next() -> None:
    """Next is refused, the index is unchanged and the first problem is reported."""
    stepper = ApplicationStepper(_three_step_form(), RecordingHandler(), 'job-1')
    assert not stepper.go_next()
    assert stepper.step_index == 0
    assert stepper.error == "Full Name is required"

    stepper.set_value(NAME, 'Ada Lovelace')
    assert not stepper.go_next()
    assert stepper.error == "Email Address is required"

def test_next_and_prev_move_between_steps() -> None:
    stepper = ApplicationStepper(_three_step_form(), RecordingHandler(), 'job-1')
    _fill_first_step(stepper)
    assert stepper.go_next()
    assert stepper.step_index == 1
    assert stepper.error is None

    stepper.go_prev()
    assert stepper.step_index == 0
    stepper.go_prev()
    assert stepper.step_index == 0, "Previous on the first step stays put"

def test_prev_clears_error_without_validating() -> None:
    stepper = ApplicationStepper(_three_step_form(), RecordingHandler(), 'job-1', initial_step=1)
    stepper.set_value(SKILLS, [{'skill': 'Python', 'rating': 0}])
    assert not stepper.go_next()
    assert stepper.error is not None
    stepper.go_prev()
    assert stepper.error is None
    assert stepper.step_index == 0

def test_unrated_skill_blocks_next() -> None:
    stepper = ApplicationStepper(_three_step_form(), RecordingHandler(), 'job-1', initial_step=1)
    stepper.set_value(SKILLS, [{'skill': 'Python', 'rating': 0}])
    assert not stepper.go_next()
    assert stepper.error == "Please rate all skills for Skills"

    stepper.set_value(SKILLS, [{'skill': 'Python', 'rating': 4}])
    assert stepper.go_next()
    assert stepper.step_index == 2

def test_values_survive_navigation() -> None:
    stepper = ApplicationStepper(_three_step_form(), RecordingHandler(), 'job-1')
    _fill_first_step(stepper)
    stepper.go_next()
    stepper.set_value(WORK_MODE, ['Remote'])
    stepper.go_prev()
    stepper.go_next()
    assert stepper.get_value(NAME) == 'Ada Lovelace'
    assert stepper.get_value(WORK_MODE) == ['Remote']

def test_unset_values_default_by_kind() -> None:
    stepper = ApplicationStepper(_three_step_form(), RecordingHandler(), 'job-1')
    assert stepper.get_value(NAME) == ''
    assert stepper.get_value(WORK_MODE) == []

def test_step_change_callback() -> None:
    seen: list[int] = []
    stepper = ApplicationStepper(_three_step_form(), RecordingHandler(), 'job-1', on_step_change=seen.append)
    _fill_first_step(stepper)
    stepper.go_next()
    stepper.go_prev()
    stepper.go_prev()
    assert seen == [1, 0], "Only real moves are reported"

def test_single_step_form_is_first_and_last() -> None:
    stepper = ApplicationStepper(_form(NAME, EMAIL), RecordingHandler(), 'job-1')
    assert stepper.step_count == 1
    assert stepper.is_first and stepper.is_last

# ===================================================================
# SUBMISSION
# ===================================================================

def test_end_to_end_submission() -> None:
    """Three steps walked through, then exactly one labeled payload is sent."""
    handler = RecordingHandler()
    stepper = ApplicationStepper(_three_step_form(), handler, 'job-1')
    _fill_first_step(stepper)
    assert stepper.go_next()
    stepper.set_value(SKILLS, [{'skill': 'Python', 'rating': 5}])
    stepper.set_value(WORK_MODE, ['Remote', 'Hybrid'])
    assert stepper.go_next()
    assert stepper.is_last

    assert asyncio.run(stepper.submit())
    assert stepper.status is StepperStatus.SUBMITTED
    assert len(handler.payloads) == 1

    payload = handler.payloads[0]
    assert payload.job_id == 'job-1'
    assert payload.form_id == 'form-1'
    assert payload.candidate_name == 'Ada Lovelace'
    assert payload.candidate_email == 'ada@example.com'
    assert payload.form_data == {
        'Full Name': 'Ada Lovelace',
        'Email Address': 'ada@example.com',
        'Skills': [{'skill': 'Python', 'rating': 5}],
        'Work Mode': ['Remote', 'Hybrid'],
    }

def test_submit_after_success_is_ignored() -> None:
    handler = RecordingHandler()
    stepper = ApplicationStepper(_form(NAME), handler, 'job-1')
    stepper.set_value(NAME, 'Ada')

    async def scenario() -> tuple[bool, bool]:
        return await stepper.submit(), await stepper.submit()

    first, second = asyncio.run(scenario())
    assert first and not second
    assert len(handler.payloads) == 1

def test_submit_while_in_flight_is_ignored() -> None:
    payloads: list[SubmissionPayload] = []

    async def scenario() -> tuple[bool, bool, bool]:
        release = asyncio.Event()

        async def slow_handler(payload: SubmissionPayload) -> None:
            payloads.append(payload)
            await release.wait()

        stepper = ApplicationStepper(_form(NAME), slow_handler, 'job-1')
        stepper.set_value(NAME, 'Ada')
        first = asyncio.create_task(stepper.submit())
        await asyncio.sleep(0)
        in_flight = stepper.is_submitting
        second = await stepper.submit()
        release.set()
        return in_flight, await first, second

    in_flight, first, second = asyncio.run(scenario())
    assert in_flight, "The first submit should be in flight"
    assert first
    assert not second, "A second submit while in flight must not send again"
    assert len(payloads) == 1

def test_submit_validates_last_step() -> None:
    handler = RecordingHandler()
    stepper = ApplicationStepper(_form(NAME), handler, 'job-1')
    assert not asyncio.run(stepper.submit())
    assert stepper.error == "Full Name is required"
    assert handler.payloads == []

def test_submit_before_last_step_is_refused() -> None:
    handler = RecordingHandler()
    stepper = ApplicationStepper(_three_step_form(), handler, 'job-1')
    _fill_first_step(stepper)
    assert not asyncio.run(stepper.submit())
    assert stepper.error == NOT_LAST_STEP_ERROR
    assert handler.payloads == []

def test_form_without_fields() -> None:
    handler = RecordingHandler()
    stepper = ApplicationStepper(_form(BREAK_1), handler, 'job-1')
    assert stepper.step_count == 0
    assert stepper.current_fields == []
    assert not asyncio.run(stepper.submit())
    assert stepper.error == NO_FIELDS_MESSAGE

def test_rejected_submission_keeps_values() -> None:
    """A rejection shows the endpoint's message and leaves the applicant where they were."""
    handler = RecordingHandler(error=SubmissionError("This job is no longer accepting applications"))
    stepper = ApplicationStepper(_three_step_form(), handler, 'job-1', initial_step=2)
    _fill_first_step(stepper)
    assert not asyncio.run(stepper.submit())
    assert stepper.error == "This job is no longer accepting applications"
    assert stepper.status is StepperStatus.EDITING
    assert stepper.step_index == 2
    assert stepper.get_value(NAME) == 'Ada Lovelace'

def test_unexpected_failure_gets_generic_message() -> None:
    handler = RecordingHandler(error=RuntimeError("connection reset"))
    stepper = ApplicationStepper(_form(NAME), handler, 'job-1')
    stepper.set_value(NAME, 'Ada')
    assert not asyncio.run(stepper.submit())
    assert stepper.error == GENERIC_SUBMIT_ERROR

def test_failed_submission_can_be_retried() -> None:
    handler = RecordingHandler(error=RuntimeError("flaky"))
    stepper = ApplicationStepper(_form(NAME), handler, 'job-1')
    stepper.set_value(NAME, 'Ada')
    assert not asyncio.run(stepper.submit())
    handler.error = None
    assert asyncio.run(stepper.submit())
    assert len(handler.payloads) == 2

def test_retry_does_not_upload_again() -> None:
    """A file stored during a rejected attempt is reused by the next one."""
    handler = RecordingHandler(error=SubmissionError("Job not found"))
    uploaded: list[str] = []

    async def uploader(handle: UploadedFile) -> FileReference:
        uploaded.append(handle.name)
        return FileReference(file_name=f"1_{handle.name}", original_name=handle.name, path=f"/uploads/1_{handle.name}")

    stepper = ApplicationStepper(_form(RESUME), handler, 'job-1', uploader=uploader)
    stepper.set_value(RESUME, UploadedFile('cv.pdf', b'%PDF-1.4', 'application/pdf'))
    assert not asyncio.run(stepper.submit())
    assert isinstance(stepper.get_value(RESUME), FileReference), "The stored reference replaces the handle"

    handler.error = None
    assert asyncio.run(stepper.submit())
    assert uploaded == ['cv.pdf'], "The file must be stored exactly once"
    assert handler.payloads[-1].resume_path == '/uploads/1_cv.pdf'

def test_slow_upload_counts_against_timeout() -> None:
    handler = RecordingHandler()

    async def slow_uploader(handle: UploadedFile) -> FileReference:
        await asyncio.sleep(10)
        return FileReference(file_name='x', original_name=handle.name, path='/uploads/x')

    stepper = ApplicationStepper(_form(RESUME), handler, 'job-1', uploader=slow_uploader, submit_timeout=0.01)
    stepper.set_value(RESUME, UploadedFile('cv.pdf', b'%PDF'))
    assert not asyncio.run(stepper.submit())
    assert stepper.error == TIMEOUT_SUBMIT_ERROR
    assert handler.payloads == [], "Nothing is sent when the upload does not finish in time"

def test_timeout_holds_when_handler_ignores_cancellation() -> None:
    """A handler that swallows cancellation still cannot outlive the deadline."""
    async def stubborn_handler(payload: SubmissionPayload) -> None:
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            pass

    stepper = ApplicationStepper(_form(NAME), stubborn_handler, 'job-1', submit_timeout=0.01)
    stepper.set_value(NAME, 'Ada')
    assert not asyncio.run(stepper.submit())
    assert stepper.error == TIMEOUT_SUBMIT_ERROR
    assert stepper.status is StepperStatus.EDITING

def test_submit_timeout() -> None:
    async def never_answers(payload: SubmissionPayload) -> None:
        await asyncio.sleep(10)

    stepper = ApplicationStepper(_form(NAME), never_answers, 'job-1', submit_timeout=0.01)
    stepper.set_value(NAME, 'Ada')
    assert not asyncio.run(stepper.submit())
    assert stepper.error == TIMEOUT_SUBMIT_ERROR
    assert stepper.status is StepperStatus.EDITING

def test_uploads_are_resolved_before_sending() -> None:
    handler = RecordingHandler()
    uploaded: list[UploadedFile] = []

    async def uploader(handle: UploadedFile) -> FileReference:
        uploaded.append(handle)
        return FileReference(file_name=f"1_{handle.name}", original_name=handle.name, path=f"/uploads/1_{handle.name}")

    stepper = ApplicationStepper(_form(RESUME), handler, 'job-1', uploader=uploader)
    stepper.set_value(RESUME, UploadedFile('cv.pdf', b'%PDF-1.4', 'application/pdf'))
    assert asyncio.run(stepper.submit())

    assert [u.name for u in uploaded] == ['cv.pdf']
    payload = handler.payloads[0]
    assert payload.form_data['Resume Upload'] == {
        'fileName': '1_cv.pdf', 'originalName': 'cv.pdf', 'path': '/uploads/1_cv.pdf',
    }
    assert payload.resume_path == '/uploads/1_cv.pdf'

def test_upload_without_uploader_fails_cleanly() -> None:
    handler = RecordingHandler()
    stepper = ApplicationStepper(_form(RESUME), handler, 'job-1')
    stepper.set_value(RESUME, UploadedFile('cv.pdf', b'%PDF'))
    assert not asyncio.run(stepper.submit())
    assert stepper.error == "No uploader configured for file 'cv.pdf'."
    assert handler.payloads == []

def test_steps_follow_form_edits() -> None:
    form = _form(NAME, EMAIL)
    stepper = ApplicationStepper(form, RecordingHandler(), 'job-1')
    assert stepper.step_count == 1
    form.fields.extend([BREAK_1, SKILLS])
    assert stepper.step_count == 2

def test_set_value_uses_field_key() -> None:
    stepper = ApplicationStepper(_form(NAME), RecordingHandler(), 'job-1')
    stepper.set_value(NAME, 'Ada')
    assert stepper.values == {'fullName': 'Ada'}
