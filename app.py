"""
Gradio UI for TubeScript: reference script -> topics -> structure -> script -> storyboard.

One column per workflow stage; only the column for the current stage is visible.
Every handler calls one WorkflowOrchestrator method and re-renders from the
returned state snapshot. Storyboard images fill in on a background worker, so the
storyboard view polls until the batch is done.

Run locally:
    python app.py [--host 127.0.0.1] [--port 7860] [--share]
"""
import argparse
import html
import time

import gradio as gr

import storyboard_config
import structure_catalog
from credentials import CREDENTIAL_NAMES, GEMINI_API_KEY, CredentialProvider
from file_inputs import ALLOWED_EXTENSIONS
from llm_utils import get_text_model_display
from script_types import StoryboardScene, SuggestedTopic
from workflow import WorkflowOrchestrator
from workflow_state import STAGE_LABELS, STAGE_ORDER, Stage, WorkflowState

POLL_INTERVAL_SECONDS = 1.0

COPY_TO_CLIPBOARD_JS = """
(script) => {
    if (script) { navigator.clipboard.writeText(script); }
    return script;
}
"""

CSS = """
.tubescript-steps { display: flex; gap: 8px; flex-wrap: wrap; margin-bottom: 8px; }
.tubescript-step { padding: 4px 10px; border-radius: 12px; background: #2a2a2a; color: #888; font-size: 0.9em; }
.tubescript-step.past { background: #1f3a2a; color: #9fd8b0; }
.tubescript-step.active { background: #d94f4f; color: white; font-weight: bold; }
.tubescript-storyboard { display: grid; grid-template-columns: repeat(auto-fill, minmax(260px, 1fr)); gap: 12px; }
.tubescript-scene { background: #1a1a1a; border-radius: 8px; padding: 8px; }
.tubescript-scene img { width: 100%; border-radius: 6px; }
.tubescript-pending { display: flex; align-items: center; justify-content: center; background: #111; color: #888; border-radius: 6px; }
"""


# ----- Rendering helpers -----


def render_step_indicator(stage: Stage) -> str:
    """HTML step bar: finished steps, the active step, and the ones still ahead."""
    active = STAGE_ORDER.index(stage)
    parts = []
    for i, s in enumerate(STAGE_ORDER):
        css = "past" if i < active else "active" if i == active else "upcoming"
        parts.append(f'<span class="tubescript-step {css}">{html.escape(STAGE_LABELS[s])}</span>')
    return f'<div class="tubescript-steps">{"".join(parts)}</div>'


def render_topics(topics: tuple[SuggestedTopic, ...] | list[SuggestedTopic]) -> str:
    if not topics:
        return "_No topics yet._"
    lines = []
    for i, topic in enumerate(topics, 1):
        lines.append(f"**{i}. {topic.title}**  \n{topic.rationale}")
    return "\n\n".join(lines)


def _scene_image_html(scene: StoryboardScene, aspect_ratio: str) -> str:
    url = scene.display_url
    if url:
        return f'<img src="{html.escape(url, quote=True)}" alt="Scene {scene.scene_number}">'
    width, height = storyboard_config.ASPECT_RATIO_DIMENSIONS.get(
        aspect_ratio, storyboard_config.ASPECT_RATIO_DIMENSIONS[storyboard_config.DEFAULT_ASPECT_RATIO]
    )
    text = "Generating..." if scene.is_generating else "Waiting..."
    return f'<div class="tubescript-pending" style="aspect-ratio: {width} / {height};">{text}</div>'


def render_storyboard_html(scenes: tuple[StoryboardScene, ...] | list[StoryboardScene], aspect_ratio: str) -> str:
    """Scene cards in scene order; each shows its image, placeholder or a pending box."""
    if not scenes:
        return "<p>No scenes yet.</p>"
    cards = []
    for scene in scenes:
        cards.append(
            '<div class="tubescript-scene">'
            f"{_scene_image_html(scene, aspect_ratio)}"
            f"<h4>Scene {scene.scene_number}</h4>"
            f"<p>{html.escape(scene.description)}</p>"
            f"<details><summary>Image prompt</summary><small>{html.escape(scene.visual_prompt)}</small></details>"
            "</div>"
        )
    return f'<div class="tubescript-storyboard">{"".join(cards)}</div>'


def render_image_status(state: WorkflowState) -> str:
    total = len(state.storyboard_scenes)
    if not total:
        return ""
    done = state.images_resolved
    if done == total:
        return f"All {total} images ready."
    return f"Images: {done}/{total} ready..."


def render_error(state: WorkflowState) -> str:
    return f"**Error:** {state.error}" if state.error else ""


def render_key_status(credentials: CredentialProvider, name: str) -> str:
    if credentials.has_saved(name):
        return f"`{name}` is saved."
    if credentials.get(name):
        return f"`{name}` comes from the environment."
    return f"`{name}` is not set."


# ----- Gradio layout -----


def create_interface(
    orchestrator: WorkflowOrchestrator | None = None,
    credentials: CredentialProvider | None = None,
) -> gr.Blocks:
    """
    Create and return the Gradio Blocks interface.

    A single orchestrator backs the whole UI (local, single-user tool).
    """
    if credentials is None:
        credentials = orchestrator.client.credentials if orchestrator is not None else CredentialProvider()
    if orchestrator is None:
        from generation_client import GenerationClient
        orchestrator = WorkflowOrchestrator(GenerationClient(credentials=credentials))

    with gr.Blocks(title="TubeScript - YouTube Script & Storyboard Generator", css=CSS) as demo:
        gr.Markdown(
            f"""
# TubeScript

Paste a YouTube script that worked (or upload up to 3), pick a new topic and a narrative
structure, get a fresh script, then turn it into a storyboard.
Text model: `{get_text_model_display()}`
"""
        )

        with gr.Accordion("API key", open=not credentials.get(GEMINI_API_KEY)):
            with gr.Row():
                key_name = gr.Dropdown(label="Key", choices=CREDENTIAL_NAMES, value=GEMINI_API_KEY)
                key_input = gr.Textbox(label="API key", type="password", placeholder="Paste your key")
            with gr.Row():
                key_save_btn = gr.Button("Save key")
                key_clear_btn = gr.Button("Remove saved key")
            key_status = gr.Markdown(render_key_status(credentials, GEMINI_API_KEY))

        step_html = gr.HTML(render_step_indicator(Stage.INPUT))
        error_md = gr.Markdown("")

        # --- INPUT ---
        with gr.Column(visible=True) as input_col:
            raw_input = gr.Textbox(
                label="Reference script or video idea",
                placeholder="Paste a script that performed well, or describe the video you want to make",
                lines=12,
            )
            required_keywords = gr.Textbox(
                label="Required keywords (optional, comma-separated)",
                placeholder="e.g. budget, beginner",
            )
            analyze_btn = gr.Button("Analyze", variant="primary")
            files = gr.File(
                label="...or upload up to 3 scripts (.txt / .md)",
                file_count="multiple",
                file_types=list(ALLOWED_EXTENSIONS),
                type="filepath",
            )
            analyze_files_btn = gr.Button("Analyze files")

        # --- TOPIC_SELECTION ---
        with gr.Column(visible=False) as topics_col:
            topics_md = gr.Markdown("")
            topic_choice = gr.Radio(label="Pick a topic", choices=[], type="index")
            select_topic_btn = gr.Button("Use this topic", variant="primary")
            with gr.Row():
                regen_keywords = gr.Textbox(label="New keywords (comma-separated)", placeholder="e.g. 2025, side hustle")
                regen_btn = gr.Button("Suggest new topics")
            topics_back_btn = gr.Button("Back")

        # --- STRUCTURE_SELECTION ---
        with gr.Column(visible=False) as structure_col:
            selected_topic_md = gr.Markdown("")
            structure_choice = gr.Radio(
                label="Narrative structure",
                choices=structure_catalog.get_structure_options(),
                value=structure_catalog.ORIGINAL_STRUCTURE,
            )
            write_btn = gr.Button("Write script", variant="primary")
            structure_back_btn = gr.Button("Back")

        # --- SCRIPT_VIEW ---
        with gr.Column(visible=False) as script_col:
            script_md = gr.Markdown("")
            script_raw = gr.Textbox(visible=False)
            with gr.Row():
                copy_btn = gr.Button("Copy script")
                rewrite_btn = gr.Button("Rewrite")
                storyboard_btn = gr.Button("Create storyboard", variant="primary")
            copy_status = gr.Markdown("")
            with gr.Row():
                script_back_btn = gr.Button("Back")
                script_reset_btn = gr.Button("Start over")

        # --- STORYBOARD_SETTINGS ---
        with gr.Column(visible=False) as settings_col:
            style_choice = gr.Dropdown(
                label="Visual style",
                choices=storyboard_config.get_visual_style_options(),
                value=storyboard_config.DEFAULT_VISUAL_STYLE,
            )
            engine_choice = gr.Radio(
                label="Image engine",
                choices=[(f"{e} ({storyboard_config.ENGINE_DESCRIPTIONS[e]})", e) for e in storyboard_config.ENGINES],
                value=storyboard_config.DEFAULT_ENGINE,
            )
            aspect_choice = gr.Radio(
                label="Aspect ratio",
                choices=storyboard_config.ASPECT_RATIOS,
                value=storyboard_config.DEFAULT_ASPECT_RATIO,
            )
            scene_count = gr.Slider(
                label="Number of scenes",
                minimum=storyboard_config.MIN_SCENE_COUNT,
                maximum=storyboard_config.MAX_SCENE_COUNT,
                step=1,
                value=storyboard_config.DEFAULT_SCENE_COUNT,
            )
            generate_btn = gr.Button("Generate storyboard", variant="primary")
            settings_back_btn = gr.Button("Back")

        # --- STORYBOARD_VIEW ---
        with gr.Column(visible=False) as view_col:
            image_status = gr.Markdown("")
            storyboard_html = gr.HTML("")
            with gr.Row():
                view_back_btn = gr.Button("Back to script")
                view_reset_btn = gr.Button("Start over")

        views = [
            step_html, error_md,
            input_col, topics_col, structure_col, script_col, settings_col, view_col,
            topics_md, topic_choice, selected_topic_md, script_md, script_raw,
            style_choice, engine_choice, aspect_choice, scene_count,
            storyboard_html, image_status,
        ]

        def render(state: WorkflowState) -> list:
            settings = state.storyboard_settings
            column_updates = [gr.update(visible=state.stage == s) for s in STAGE_ORDER]
            topic = state.selected_topic
            return [
                render_step_indicator(state.stage),
                render_error(state),
                *column_updates,
                render_topics(state.topics),
                gr.update(choices=[t.title for t in state.topics], value=None),
                f"### {topic.title}\n{topic.rationale}" if topic else "",
                state.generated_script,
                state.generated_script,
                gr.update(value=settings.visual_style) if settings else gr.update(),
                gr.update(value=settings.engine) if settings else gr.update(),
                gr.update(value=settings.aspect_ratio) if settings else gr.update(),
                gr.update(value=settings.scene_count) if settings else gr.update(),
                render_storyboard_html(state.storyboard_scenes, _aspect(state)),
                render_image_status(state),
            ]

        # ----- Handlers -----

        def on_analyze(text, keywords):
            return render(orchestrator.submit_input(text or "", keywords or ""))

        def on_analyze_files(paths, keywords):
            return render(orchestrator.submit_file_paths(paths or [], keywords or ""))

        def on_select_topic(index):
            if index is None:
                return render(orchestrator.state)
            return render(orchestrator.select_topic(int(index)))

        def on_regenerate(keywords):
            state = orchestrator.regenerate_topics(keywords or "")
            return render(state) + [state.regenerate_keywords]

        def on_write(structure_id):
            return render(orchestrator.select_structure(structure_id or structure_catalog.ORIGINAL_STRUCTURE))

        def on_rewrite():
            return render(orchestrator.regenerate_script())

        def on_copy(script):
            if not (script or "").strip():
                return "Nothing to copy yet."
            orchestrator.copy_script()
            return "Script copied to clipboard."

        def on_create_storyboard():
            return render(orchestrator.create_storyboard())

        def on_setting(field):
            def handler(value):
                if field == "scene_count" and value is not None:
                    value = int(value)
                return render(orchestrator.change_settings(**{field: value}))
            return handler

        def on_generate():
            return render(orchestrator.generate_storyboard())

        def poll_images():
            """Stream storyboard updates while the image worker is running."""
            while orchestrator.images_pending():
                state = orchestrator.state
                yield render_storyboard_html(state.storyboard_scenes, _aspect(state)), render_image_status(state)
                time.sleep(POLL_INTERVAL_SECONDS)
            state = orchestrator.state
            yield render_storyboard_html(state.storyboard_scenes, _aspect(state)), render_image_status(state)

        def on_back():
            return render(orchestrator.go_back())

        def on_reset():
            return render(orchestrator.reset()) + [None, ""]

        def on_save_key(name, key):
            try:
                credentials.save(key or "", name)
            except ValueError as e:
                return str(e), key
            return render_key_status(credentials, name), ""

        def on_clear_key(name):
            credentials.clear(name)
            return render_key_status(credentials, name)

        # ----- Wiring -----

        analyze_btn.click(fn=on_analyze, inputs=[raw_input, required_keywords], outputs=views)
        analyze_files_btn.click(fn=on_analyze_files, inputs=[files, required_keywords], outputs=views)
        select_topic_btn.click(fn=on_select_topic, inputs=[topic_choice], outputs=views)
        regen_btn.click(fn=on_regenerate, inputs=[regen_keywords], outputs=views + [regen_keywords])
        write_btn.click(fn=on_write, inputs=[structure_choice], outputs=views)
        rewrite_btn.click(fn=on_rewrite, inputs=None, outputs=views)
        copy_btn.click(fn=on_copy, inputs=[script_raw], outputs=[copy_status], js=COPY_TO_CLIPBOARD_JS)
        storyboard_btn.click(fn=on_create_storyboard, inputs=None, outputs=views)

        style_choice.input(fn=on_setting("visual_style"), inputs=[style_choice], outputs=views)
        engine_choice.input(fn=on_setting("engine"), inputs=[engine_choice], outputs=views)
        aspect_choice.input(fn=on_setting("aspect_ratio"), inputs=[aspect_choice], outputs=views)
        scene_count.release(fn=on_setting("scene_count"), inputs=[scene_count], outputs=views)

        generate_btn.click(fn=on_generate, inputs=None, outputs=views).then(
            fn=poll_images, inputs=None, outputs=[storyboard_html, image_status]
        )

        for btn in (topics_back_btn, structure_back_btn, script_back_btn, settings_back_btn, view_back_btn):
            btn.click(fn=on_back, inputs=None, outputs=views)
        for btn in (script_reset_btn, view_reset_btn):
            btn.click(fn=on_reset, inputs=None, outputs=views + [files, raw_input])

        key_save_btn.click(fn=on_save_key, inputs=[key_name, key_input], outputs=[key_status, key_input])
        key_clear_btn.click(fn=on_clear_key, inputs=[key_name], outputs=[key_status])
        key_name.change(fn=lambda name: render_key_status(credentials, name), inputs=[key_name], outputs=[key_status])

    return demo


def _aspect(state: WorkflowState) -> str:
    settings = state.storyboard_settings
    return settings.aspect_ratio if settings else storyboard_config.DEFAULT_ASPECT_RATIO


def main():
    parser = argparse.ArgumentParser(description="TubeScript: YouTube script and storyboard generator")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=7860, help="Port (default: 7860)")
    parser.add_argument("--share", action="store_true", help="Create a public Gradio share link")
    args = parser.parse_args()

    demo = create_interface()
    demo.queue().launch(server_name=args.host, server_port=args.port, share=args.share)


if __name__ == "__main__":
    main()
