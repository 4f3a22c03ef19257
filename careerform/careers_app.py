# ===================================================================
# 1. IMPORTS
# ===================================================================
import sqlite3
import logging
from pathlib import Path
from nicegui import app, run, ui

# Local application imports
from .config import PORT, STORAGE_SECRET, UPLOAD_DIR
from .stepper import ApplicationStepper, NO_FIELDS_MESSAGE
from .storage import (
    Job, create_application, get_public_job, list_active_jobs,
    save_upload, seed_sample_data, setup_database,
)
from .submission import FileReference, SubmissionPayload, UploadedFile
from .widgets import create_field

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# ===================================================================
# 2. SUBMISSION COLLABORATORS
# ===================================================================

async def submit_application(payload: SubmissionPayload) -> None:
    application_id = await run.io_bound(create_application, payload)
    logger.info(f"Application {application_id} accepted for job '{payload.job_id}'.")

async def upload_file(handle: UploadedFile) -> FileReference:
    return await run.io_bound(save_upload, handle)

# ===================================================================
# 3. UI RENDERING
# ===================================================================

def _render_job_meta(job: Job) -> None:
    with ui.row().classes('gap-4 text-caption text-grey-7'):
        if job.location:
            with ui.row().classes('items-center gap-1'):
                ui.icon('place', size='xs'); ui.label(job.location)
        if job.department:
            with ui.row().classes('items-center gap-1'):
                ui.icon('work', size='xs'); ui.label(job.department)
        if job.experience_level:
            with ui.row().classes('items-center gap-1'):
                ui.icon('schedule', size='xs'); ui.label(job.experience_level)

def _render_not_configured(job: Job) -> None:
    ui.label(job.title).classes('text-h5 q-mb-sm')
    with ui.card().classes('w-full'):
        ui.label("Application form is not configured for this job.").classes('text-negative text-weight-medium')
        ui.label("Please contact the company directly or check back later.").classes('text-grey-7')

def _render_confirmation(job: Job) -> None:
    with ui.column().classes('w-full items-center q-pa-lg'):
        ui.icon('check_circle', size='xl', color='positive')
        ui.label('Application submitted!').classes('text-h5 text-positive')
        ui.label(f"Thank you for applying for {job.title}. Our team will review your details "
                 "and contact you if you are shortlisted.").classes('text-grey-7 text-center')
        ui.button('View other openings', on_click=lambda: ui.navigate.to('/careers')) \
            .props('unelevated color=primary').classes('q-mt-md')

def render_application_stepper(job: Job, stepper: ApplicationStepper) -> None:
    """Renders the applicant stepper; every action refreshes the whole card."""

    def handle_next() -> None:
        if not stepper.go_next() and stepper.error:
            ui.notify(stepper.error, type='negative')
        render_stepper.refresh()

    def handle_prev() -> None:
        stepper.go_prev()
        render_stepper.refresh()

    async def handle_submit(button: ui.button) -> None:
        button.disable()
        button.text = 'Submitting...'
        try:
            if await stepper.submit():
                ui.notify('Application submitted successfully!', type='positive')
            elif stepper.error:
                ui.notify(stepper.error, type='negative', multi_line=True)
        finally:
            render_stepper.refresh()

    @ui.refreshable
    def render_stepper() -> None:
        if stepper.is_submitted:
            _render_confirmation(job)
            return
        if stepper.step_count == 0:
            ui.label(NO_FIELDS_MESSAGE).classes('text-grey-7')
            return

        ui.label(stepper.progress_label).classes('text-caption text-grey-7')
        with ui.row().classes('w-full no-wrap gap-1 q-mb-md'):
            for i in range(stepper.step_count):
                ui.element('div').classes('col rounded-borders') \
                    .classes('bg-primary' if i <= stepper.step_index else 'bg-grey-3') \
                    .style('height: 6px')

        with ui.grid(columns=12).classes('w-full gap-4'):
            for f in stepper.current_fields:
                create_field(
                    f,
                    get_value=lambda f=f: stepper.get_value(f),
                    set_value=lambda value, f=f: stepper.set_value(f, value),
                )

        if stepper.error:
            ui.label(stepper.error).classes('w-full q-mt-md q-pa-sm text-negative bg-red-1 rounded-borders')

        with ui.row().classes('w-full q-mt-lg justify-between items-center'):
            prev_button = ui.button('Previous', on_click=handle_prev).props('outline rounded')
            if stepper.is_first:
                prev_button.disable()
            if not stepper.is_last:
                ui.button('Next', on_click=handle_next).props('unelevated rounded color=primary')
            else:
                submit_button = ui.button('Submit Application').props('unelevated rounded color=positive')
                submit_button.on('click', lambda: handle_submit(submit_button))
                if stepper.is_submitting:
                    submit_button.disable()

    render_stepper()

# ===================================================================
# 4. PAGE ROUTING
# ===================================================================

@ui.page('/')
def index_page() -> None:
    ui.navigate.to('/careers')

@ui.page('/careers')
def careers_page() -> None:
    ui.query('body').style('background-color: #f0f2f5;')
    with ui.header(elevated=True).classes('bg-primary text-white q-pa-sm items-center'):
        ui.label('Careers').classes('text-h5')

    try:
        jobs = list_active_jobs()
    except sqlite3.Error as e:
        logger.error(f"Failed to load open positions: {e}")
        ui.notify("Could not load open positions, please try again.", type='negative')
        jobs = []

    with ui.column().classes('w-full items-center q-pa-md'):
        if not jobs:
            ui.label('There are no open positions right now.').classes('text-grey-7')
        for job in jobs:
            with ui.card().classes('q-pa-md').style('width: 95%; max-width: 900px;'):
                ui.label(job.title).classes('text-h6')
                _render_job_meta(job)
                ui.markdown(job.description)
                ui.button('Apply', on_click=lambda _, job_id=job.id: ui.navigate.to(f'/careers/{job_id}/apply')) \
                    .props('unelevated color=primary')

@ui.page('/careers/{job_id}/apply')
def apply_page(job_id: str) -> None:
    try:
        job = get_public_job(job_id)
    except sqlite3.Error as e:
        logger.error(f"Apply page load error for job '{job_id}': {e}")
        job = None
    if not job:
        ui.navigate.to('/careers')
        return

    ui.query('body').style('background-color: #f0f2f5;')
    with ui.header(elevated=True).classes('bg-white text-dark q-pa-sm items-center'):
        ui.button('Back to openings', icon='arrow_back', on_click=lambda: ui.navigate.to('/careers')) \
            .props('flat no-caps color=primary')
        ui.space()
        ui.label(f"Applying for {job.title}").classes('text-body2')

    with ui.column().classes('w-full items-center q-pa-md'):
        with ui.card().classes('q-pa-lg shadow-4').style('width: 95%; max-width: 900px;'):
            if not job.form or not job.form.fields:
                _render_not_configured(job)
                return
            ui.label('Application Form').classes('text-h5')
            ui.label('Please complete all required fields. It only takes a few minutes.').classes('text-grey-7')
            _render_job_meta(job)
            stepper = ApplicationStepper(job.form, submit_application, job.id, uploader=upload_file)
            render_application_stepper(job, stepper)

# ===================================================================
# 5. ENTRY POINT
# ===================================================================

def main() -> None:
    setup_database()
    seed_sample_data()
    Path(UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    app.add_static_files('/uploads', str(UPLOAD_DIR))
    ui.run(
        host='0.0.0.0',
        port=PORT,
        title='Careers',
        reload=False,
        storage_secret=STORAGE_SECRET,
    )

if __name__ == "__main__":
    main()
