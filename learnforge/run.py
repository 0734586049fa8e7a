"""
LearnForge: Concept Mastery Web App

Gradio interface over a LearningSession: paste material, master concepts
level by level, then generate and save study notes.
"""

import sys
import time
from typing import Optional

import gradio as gr
from loguru import logger

from learnforge.agents import create_provider
from learnforge.config import config
from learnforge.errors import LearnForgeError, PersistenceError
from learnforge.models.concept import MasteryLevel
from learnforge.models.question import QuestionType
from learnforge.session import LearningSession
from learnforge.utils.logging_setup import configure_logging
from learnforge.utils.persistence import NoteStore
from learnforge.utils.progress import default_note_title, mastery_progress_label

# Global state
current_session: Optional[LearningSession] = None

NEXT_QUESTION_PROMPT = "Answer recorded. Press **Next Question** to continue."


def get_session() -> LearningSession:
    global current_session
    if current_session is None:
        current_session = LearningSession(
            create_provider(config.model),
            session_config=config.session,
            note_store=NoteStore(config.paths.notes_dir),
            request_timeout=config.model.request_timeout,
        )
    return current_session


# ==================== UI Helper Functions ====================

def _concept_label(concept) -> str:
    return f"{concept.title} [{concept.concept_id}]"


def _concept_id_from_label(label: str) -> Optional[str]:
    if not label or "[" not in label:
        return None
    return label.rsplit("[", 1)[1].rstrip("]")


def _format_concept_table(session: LearningSession) -> str:
    if not len(session.graph):
        return "*No concepts yet. Paste some material and extract concepts.*"

    lines = [
        f"**Concept Graph** ({mastery_progress_label(session.concepts)})",
        "",
        "| Concept | Level | Prerequisites | Mistakes |",
        "|---|---|---|---|",
    ]
    for concept in session.graph.topological_order():
        prereqs = ", ".join(c.title for c in session.graph.prerequisites_of(concept)) or "-"
        lines.append(
            f"| {concept.title} | {int(concept.mastery_level)} - {concept.mastery_level.display_name} "
            f"| {prereqs} | {len(concept.mistakes)} |"
        )
    return "\n".join(lines)


def _format_question(session: LearningSession) -> str:
    concept = session.active_concept
    question = session.current_question
    if concept is None or question is None:
        return "Select a concept to begin."

    level = concept.effective_level
    output = (
        f"#### Level {int(level)}: {level.display_name}\n"
        f"## {concept.title}\n\n"
        f"{question.text}\n"
    )
    if question.question_type == QuestionType.MULTIPLE_CHOICE and question.options:
        output += "\n" + "\n".join(f"- {opt}" for opt in question.options)
        output += "\n\n*Type the option you choose.*"
    return output


# ==================== Event Handlers ====================

def extract_concepts_ui(raw_text: str):
    session = get_session()
    try:
        session.start(raw_text)
    except LearnForgeError as e:
        return f"Could not start session: {e}", _format_concept_table(session), gr.update(choices=[], value=None)

    choices = [_concept_label(c) for c in session.graph.topological_order()]
    return (
        f"Extracted {len(session.graph)} concepts.",
        _format_concept_table(session),
        gr.update(choices=choices, value=None),
    )


def open_concept_ui(label: str):
    session = get_session()
    concept_id = _concept_id_from_label(label)
    if concept_id is None:
        return "Select a concept to begin.", ""
    try:
        session.open(concept_id)
    except LearnForgeError as e:
        return f"**{e}**", ""
    return _format_question(session), ""


def submit_answer_ui(answer: str):
    session = get_session()
    if not answer or not answer.strip():
        return gr.update(), "Please enter an answer first.", _format_concept_table(session), answer

    try:
        outcome = session.answer(answer)
    except LearnForgeError as e:
        return gr.update(), f"**{e}**", _format_concept_table(session), answer

    if outcome.mastery_complete:
        feedback = f"### Concept Mastered!\n\n{outcome.result.explanation}"
        time.sleep(session.orchestrator.close_delay)
        session.close()
        return "Concept mastered. Select another concept.", feedback, _format_concept_table(session), ""

    if outcome.result.is_correct:
        level = MasteryLevel(outcome.concept.mastery_level)
        feedback = f"### Correct - now at {level.display_name}\n\n{outcome.result.explanation}"
    else:
        feedback = (
            f"### Learning Moment\n\n{outcome.result.explanation}\n\n"
            "*Please answer another question at this level to demonstrate understanding.*"
        )
    return NEXT_QUESTION_PROMPT, feedback, _format_concept_table(session), ""


def next_question_ui():
    session = get_session()
    try:
        session.next()
    except LearnForgeError as e:
        return f"**{e}**", "", ""
    return _format_question(session), "", ""


def generate_summary_ui():
    session = get_session()
    summary = session.summary()
    return summary, default_note_title(session.concepts)


def save_note_ui(owner_id: str, title: str):
    session = get_session()
    try:
        note = session.save_note(owner_id, title)
    except (PersistenceError, LearnForgeError) as e:
        return f"Could not save note: {e}"
    return f"Saved note **{note.title}** ({note.id})"


def list_notes_ui(owner_id: str):
    session = get_session()
    try:
        notes = session.note_store.list(owner_id)
    except LearnForgeError as e:
        return f"Could not load notes: {e}"
    if not notes:
        return "*No saved notes.*"
    return "\n".join(
        f"- **{n.title}** ({n.mastery_summary.get('mastered', 0)}/{n.concept_count} mastered) "
        f"`{n.id}` - {n.created_at[:10]}"
        for n in notes
    )


def delete_note_ui(owner_id: str, note_id: str):
    session = get_session()
    try:
        deleted = session.note_store.delete(owner_id, note_id.strip())
    except LearnForgeError as e:
        return f"Could not delete note: {e}", list_notes_ui(owner_id)
    status = "Note deleted." if deleted else "Note not found."
    return status, list_notes_ui(owner_id)


# ==================== Interface ====================

def create_interface():
    with gr.Blocks(title="LearnForge") as demo:
        gr.Markdown("# LearnForge\nTransform your learning material into a concept mastery path.")

        with gr.Tab("Learn"):
            with gr.Row():
                with gr.Column(scale=1):
                    material_input = gr.Textbox(label="Learning material", lines=10)
                    extract_btn = gr.Button("Extract Concepts", variant="primary")
                    extract_status = gr.Markdown()
                    concept_table = gr.Markdown(_format_concept_table(get_session()))
                    concept_dropdown = gr.Dropdown(label="Concept", choices=[], interactive=True)

                with gr.Column(scale=2):
                    question_output = gr.Markdown("Select a concept to begin.")
                    answer_input = gr.Textbox(label="Your answer", lines=4)
                    with gr.Row():
                        submit_btn = gr.Button("Submit Answer", variant="primary")
                        next_btn = gr.Button("Next Question")
                    feedback_output = gr.Markdown()

            extract_btn.click(
                extract_concepts_ui,
                inputs=[material_input],
                outputs=[extract_status, concept_table, concept_dropdown],
            )
            concept_dropdown.change(
                open_concept_ui,
                inputs=[concept_dropdown],
                outputs=[question_output, feedback_output],
            )
            submit_btn.click(
                submit_answer_ui,
                inputs=[answer_input],
                outputs=[question_output, feedback_output, concept_table, answer_input],
            )
            next_btn.click(
                next_question_ui,
                outputs=[question_output, feedback_output, answer_input],
            )

        with gr.Tab("Summary"):
            owner_input = gr.Textbox(label="Learner ID", placeholder="your-user-id")
            summary_btn = gr.Button("Finish & Summary", variant="primary")
            title_input = gr.Textbox(label="Note title")
            summary_output = gr.Markdown()
            save_btn = gr.Button("Save to My Notes")
            save_status = gr.Markdown()

            summary_btn.click(generate_summary_ui, outputs=[summary_output, title_input])
            save_btn.click(save_note_ui, inputs=[owner_input, title_input], outputs=[save_status])

        with gr.Tab("My Notes"):
            notes_owner = gr.Textbox(label="Learner ID")
            refresh_btn = gr.Button("Refresh")
            notes_output = gr.Markdown()
            delete_id = gr.Textbox(label="Note ID to delete")
            delete_btn = gr.Button("Delete Note", variant="stop")
            delete_status = gr.Markdown()

            refresh_btn.click(list_notes_ui, inputs=[notes_owner], outputs=[notes_output])
            delete_btn.click(
                delete_note_ui,
                inputs=[notes_owner, delete_id],
                outputs=[delete_status, notes_output],
            )

    return demo


def main():
    configure_logging(config.logging, config.paths)
    config.prepare_fs()

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(error)
        sys.exit(1)

    demo = create_interface()
    demo.queue()
    demo.launch(server_name="0.0.0.0", server_port=7860, share=False, show_error=True)


if __name__ == "__main__":
    main()
