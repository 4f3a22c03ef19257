# careerform/widgets.py
from __future__ import annotations
import logging
from typing import Any
from collections.abc import Callable

from nicegui import events, ui

from .countries import dial_code_options
from .form_schema import FieldType, FormField
from .skills import (
    SkillRating, add_tag, all_skills_rated, handle_tag_key, remove_tag,
    set_skill_rating, suggestions, sync_skill_ratings, MAX_RATING,
)
from .submission import FileReference, UploadedFile

logger = logging.getLogger(__name__)

Setter = Callable[[Any], None]
Getter = Callable[[], Any]

# HTML input type per single-line field kind; anything else renders as text.
INPUT_TYPES: dict[FieldType, str] = {
    FieldType.TEXT: 'text',
    FieldType.EMAIL: 'email',
    FieldType.PHONE: 'tel',
    FieldType.URL: 'url',
    FieldType.PASSWORD: 'password',
    FieldType.NUMBER: 'number',
}
TEXTAREA_ROWS: int = 4
SUGGESTION_LIMIT: int = 5
EMPTY_SELECT_LABEL: str = 'Select an option'

def input_type_for(f: FormField) -> str:
    kind = f.kind
    return INPUT_TYPES.get(kind, 'text') if kind else 'text'

def toggle_choice(selected: list[str], option: str, checked: bool) -> list[str]:
    """Checkbox semantics: append on check, filter out on uncheck."""
    if checked:
        return selected if option in selected else [*selected, option]
    return [o for o in selected if o != option]

# ===================================================================
# 1. COMPOSITE CONTROLS (tags, skills)
# ===================================================================

def create_tags_input(
    value: list[str],
    on_change: Callable[[list[str]], None],
    options: list[str] | None = None,
    placeholder: str | None = None,
) -> None:
    """
    A free-text tag picker. Enter, comma and Tab commit the typed tag,
    Backspace on an empty input removes the last one, and known options are
    offered as suggestions while typing.
    """
    options = options or []
    state: dict[str, Any] = {'tags': list(value or []), 'text': ''}

    def commit(new_tags: list[str], new_text: str) -> None:
        changed = new_tags != state['tags']
        state['tags'], state['text'] = new_tags, new_text
        if tag_input.value != new_text:
            tag_input.value = new_text
        if changed:
            on_change(list(new_tags))
            render_tags.refresh()
        render_suggestions.refresh()

    def handle_key(key: str) -> None:
        new_tags, new_text = handle_tag_key(state['tags'], tag_input.value or '', key)
        commit(new_tags, new_text)

    def handle_text_change(e: Any) -> None:
        text = e.value or ''
        if ',' in text:
            # Comma commits whatever precedes it.
            head, _, tail = text.partition(',')
            commit(add_tag(state['tags'], head), tail)
            return
        state['text'] = text
        render_suggestions.refresh()

    def handle_keydown(e: events.GenericEventArguments) -> None:
        if e.args.get('key') == 'Backspace':
            handle_key('Backspace')

    @ui.refreshable
    def render_tags() -> None:
        with ui.row().classes('gap-1'):
            for tag in state['tags']:
                ui.chip(tag, removable=True, color='indigo-1', text_color='indigo-9',
                        on_value_change=lambda e, t=tag: None if e.value else
                        commit(remove_tag(state['tags'], t), state['text']))

    @ui.refreshable
    def render_suggestions() -> None:
        available = suggestions(options, state['tags'], state['text'])
        if not available:
            return
        with ui.row().classes('gap-1 items-center'):
            ui.label('Available:').classes('text-caption text-grey-7')
            for option in available[:SUGGESTION_LIMIT]:
                ui.button(f"+ {option}", on_click=lambda _, o=option: commit(add_tag(state['tags'], o), '')) \
                    .props('flat dense no-caps size=sm color=grey-8')
            if len(available) > SUGGESTION_LIMIT:
                ui.label(f"+{len(available) - SUGGESTION_LIMIT} more").classes('text-caption text-grey-6')

    with ui.column().classes('w-full gap-1'):
        render_tags()
        tag_input = ui.input(placeholder=placeholder or 'Type to add tags...', on_change=handle_text_change) \
            .props('outlined dense').classes('w-full')
        tag_input.on('keydown.enter.prevent', lambda: handle_key('Enter'))
        tag_input.on('keydown.tab.prevent', lambda: handle_key('Tab'))
        tag_input.on('keydown', handle_keydown, ['key'])
        render_suggestions()

def create_skills_input(
    value: list[SkillRating],
    on_change: Callable[[list[SkillRating]], None],
    options: list[str] | None = None,
    placeholder: str | None = None,
) -> None:
    """Tag picker for skills plus a required 1-5 rating for every chosen skill."""
    state: dict[str, list[SkillRating]] = {'ratings': list(value or [])}

    def publish(ratings: list[SkillRating]) -> None:
        state['ratings'] = ratings
        on_change(list(ratings))
        render_ratings.refresh()

    def handle_skills_change(skills: list[str]) -> None:
        publish(sync_skill_ratings(state['ratings'], skills))

    def handle_rating_change(skill: str, rating: Any) -> None:
        if not rating:
            return
        publish(set_skill_rating(state['ratings'], skill, int(rating)))

    @ui.refreshable
    def render_ratings() -> None:
        ratings = state['ratings']
        if not ratings:
            return
        ui.label('Rate your skills: *').classes('text-body2 q-mt-sm')
        for item in ratings:
            unrated = item['rating'] == 0
            with ui.row().classes('w-full items-center justify-between q-pa-sm rounded-borders') \
                    .classes('bg-red-1' if unrated else 'bg-grey-2'):
                ui.label(item['skill']).classes('text-weight-medium')
                with ui.row().classes('items-center no-wrap'):
                    ui.rating(value=item['rating'], max=MAX_RATING,
                              on_change=lambda e, s=item['skill']: handle_rating_change(s, e.value))
                    ui.label('Required' if unrated else f"{item['rating']}/{MAX_RATING}") \
                        .classes('text-caption ' + ('text-negative' if unrated else 'text-grey-7'))
        if not all_skills_rated(ratings):
            ui.label('Please rate all skills before submitting the application.') \
                .classes('text-caption text-negative')

    create_tags_input(
        [r['skill'] for r in state['ratings']], handle_skills_change,
        options=options, placeholder=placeholder or 'Type to add skills...',
    )
    render_ratings()

# ===================================================================
# 2. ELEMENT CREATORS (one per field kind)
# ===================================================================

def _create_text_input(f: FormField, v: Any, set_value: Setter) -> None:
    ui.input(placeholder=f.placeholder or '', value=v or '',
             password=f.kind is FieldType.PASSWORD,
             on_change=lambda e: set_value(e.value)) \
        .props(f"outlined dense type={input_type_for(f)}").classes('w-full')

def _create_textarea_input(f: FormField, v: Any, set_value: Setter) -> None:
    ui.textarea(placeholder=f.placeholder or '', value=v or '', on_change=lambda e: set_value(e.value)) \
        .props(f"outlined dense rows={TEXTAREA_ROWS}").classes('w-full')

def _create_date_input(f: FormField, v: Any, set_value: Setter) -> None:
    ui.input(value=v or '', on_change=lambda e: set_value(e.value)) \
        .props('outlined dense type=date').classes('w-full')

def _create_select_input(f: FormField, v: Any, set_value: Setter) -> None:
    options: dict[str, str] = {'': f.placeholder or EMPTY_SELECT_LABEL}
    options.update({o: o for o in f.choices})
    ui.select(options=options, value=v if v in options else '', on_change=lambda e: set_value(e.value or '')) \
        .props('outlined dense').classes('w-full')

def _create_radio_buttons(f: FormField, v: Any, set_value: Setter) -> None:
    choices = f.choices
    ui.radio(options=choices, value=v if v in choices else None, on_change=lambda e: set_value(e.value or '')) \
        .props('dense')

def _create_checkbox_group(f: FormField, v: Any, set_value: Setter) -> None:
    state: dict[str, list[str]] = {'selected': list(v) if isinstance(v, list) else []}

    def handle_toggle(option: str, checked: bool) -> None:
        state['selected'] = toggle_choice(state['selected'], option, checked)
        set_value(list(state['selected']))

    with ui.column().classes('gap-0'):
        for option in f.choices:
            ui.checkbox(option, value=option in state['selected'],
                        on_change=lambda e, o=option: handle_toggle(o, bool(e.value)))

def _create_file_input(f: FormField, v: Any, set_value: Setter) -> None:
    # The picked file is only held in memory; storing it happens on submit.
    state: dict[str, Any] = {'file': v or None}

    def update(handle: UploadedFile | None) -> None:
        state['file'] = handle
        set_value(handle)
        render_current.refresh()

    def handle_upload(e: events.UploadEventArguments) -> None:
        handle = UploadedFile(name=e.name, content=e.content.read(), content_type=e.type or 'application/octet-stream')
        logger.info(f"Applicant picked '{handle.name}' ({handle.size} bytes) for '{f.key}'.")
        update(handle)

    @ui.refreshable
    def render_current() -> None:
        current = state['file']
        if isinstance(current, UploadedFile):
            ui.label(current.name).classes('text-caption text-grey-8')
        elif isinstance(current, FileReference):
            ui.label(current.original_name).classes('text-caption text-grey-8')

    with ui.column().classes('w-full gap-1'):
        ui.upload(label=f.placeholder or 'Upload file', auto_upload=True, max_files=1, on_upload=handle_upload) \
            .props('accept=.pdf,.doc,.docx flat bordered').classes('w-full') \
            .on('removed', lambda: update(None))
        ui.label('PDF, DOC, DOCX (Max 5MB)').classes('text-caption text-grey-6')
        render_current()

def _create_tags(f: FormField, v: Any, set_value: Setter) -> None:
    create_tags_input(list(v) if isinstance(v, list) else [], set_value,
                      options=f.choices, placeholder=f.placeholder)

def _create_skills(f: FormField, v: Any, set_value: Setter) -> None:
    ratings = [r for r in v if isinstance(r, dict)] if isinstance(v, list) else []
    create_skills_input(ratings, set_value, options=f.choices, placeholder=f.placeholder)

def _create_country_code(f: FormField, v: Any, set_value: Setter) -> None:
    options: dict[str, str] = {'': f.placeholder or 'Country code'}
    options.update(dial_code_options())
    ui.select(options=options, value=v if v in options else '', with_input=True,
              on_change=lambda e: set_value(e.value or '')) \
        .props('outlined dense').classes('w-full')

# --- Element Creator Map ---
CREATOR_MAP: dict[FieldType, Callable[[FormField, Any, Setter], None]] = {
    FieldType.TEXT: _create_text_input,
    FieldType.EMAIL: _create_text_input,
    FieldType.PHONE: _create_text_input,
    FieldType.URL: _create_text_input,
    FieldType.PASSWORD: _create_text_input,
    FieldType.NUMBER: _create_text_input,
    FieldType.TEXTAREA: _create_textarea_input,
    FieldType.DATE: _create_date_input,
    FieldType.SELECT: _create_select_input,
    FieldType.RADIO: _create_radio_buttons,
    FieldType.CHECKBOX: _create_checkbox_group,
    FieldType.FILE: _create_file_input,
    FieldType.TAGS: _create_tags,
    FieldType.SKILLS: _create_skills,
    FieldType.COUNTRY_CODE: _create_country_code,
}

def creator_for(f: FormField) -> Callable[[FormField, Any, Setter], None] | None:
    """The creator for a field; unknown kinds get a plain text input, page breaks nothing."""
    kind = f.kind
    if kind is FieldType.PAGE_BREAK:
        return None
    if kind is None:
        logger.warning(f"Unknown field type '{f.field_type}' on '{f.key}', rendering as text.")
        return _create_text_input
    return CREATOR_MAP.get(kind, _create_text_input)

# ===================================================================
# 3. FIELD RENDERER
# ===================================================================

def create_field(f: FormField, get_value: Getter, set_value: Setter) -> None:
    """
    Renders one field in a 12-column grid cell. The required marker is only
    visual; the stepper enforces it.
    """
    creator = creator_for(f)
    if creator is None:
        return
    with ui.column().classes(f"col-span-{f.grid_span} gap-1 {f.css_class or ''}".strip()):
        with ui.row().classes('gap-0'):
            ui.label(f.label).classes('text-body2 text-weight-medium')
            if f.is_required:
                ui.label('*').classes('text-negative q-ml-xs')
        creator(f, get_value(), set_value)
