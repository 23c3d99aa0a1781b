"""bfvm Interactive Demo.

A Gradio web interface for running and inspecting bfvm programs.

Usage:
    cd /path/to/bfvm
    python demo/gradio_app.py

Features:
    - Write or load example programs
    - Supply program input and choose the end-of-input policy
    - See step-by-step execution trace
    - Inspect the tape around the final tape pointer
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import gradio as gr
from bfvm import BFVMError, ExecutionEngine
from bfvm.ports import BufferSink, BytesSource


# =============================================================================
# Example Programs
# =============================================================================

EXAMPLE_PROGRAMS = {
    "Hello World": """>++++++++[<+++++++++>-]<.
>++++[<+++++++>-]<+.
+++++++..
+++.
>>++++++[<+++++++>-]<++.
------------.
>++++++[<+++++++++>-]<+.
<.
+++.
------.
--------.
>>>++++[<++++++++>-]<+.""",

    "Cat": """Echo input until end of input (use eof 0)
,[.,]""",

    "Reverse": """Read input then print it backwards (use eof 0)
>,[>,]<[.<]""",

    "Multiply 7x6": """Leaves 42 in cell 1
+++++++[>++++++<-]>""",

    "Custom": ""
}

TRACE_LIMIT = 200


# =============================================================================
# Execution Functions
# =============================================================================

def run_program(program: str, input_text: str, eof_policy: str, tape_size: int, max_steps: int) -> tuple:
    """Execute a program and return results.

    Args:
        program: Program source
        input_text: Bytes for ',' (UTF-8 encoded)
        eof_policy: 'error', '0' or '255'
        tape_size: Number of tape cells
        max_steps: Step limit for this run

    Returns:
        Tuple of (summary_text, output_text, trace_text, tape_text)
    """
    if not program.strip():
        return "Error: No program provided", "", "", ""

    sink = BufferSink()
    eof = None if eof_policy == "error" else int(eof_policy)
    source = BytesSource(input_text.encode("utf-8"), eof=eof)

    try:
        engine = ExecutionEngine.from_source(
            program,
            tape_size=int(tape_size),
            sink=sink,
            source=source,
            record_trace=True,
        )
    except (BFVMError, ValueError) as e:
        return f"Error: {e}", "", "", ""

    try:
        engine.run(max_steps=int(max_steps))
    except BFVMError as e:
        error_msg = str(e)
    else:
        error_msg = None

    # Format summary
    summary = engine.get_summary()
    summary_lines = [
        "EXECUTION SUMMARY",
        "=" * 40,
        f"Ops: {summary['program_length']}",
        f"Steps: {summary['steps']}",
        f"Halted: {'Yes' if summary['halted'] else 'No'}",
        f"Output bytes: {sink.writes}",
        f"Input bytes read: {source.reads}",
    ]
    if error_msg:
        summary_lines.append(f"\nRuntime: {error_msg}")
    summary_text = "\n".join(summary_lines)

    output_text = sink.getvalue().decode("utf-8", errors="replace")

    trace_text = "\n".join([
        "EXECUTION TRACE",
        "=" * 60,
        engine.format_trace(limit=TRACE_LIMIT),
    ])

    # Format tape
    pointer = engine.get_tape_pointer()
    start, cells = engine.tape.window(pointer, radius=8)
    tape_lines = [
        "TAPE",
        "=" * 30,
    ]
    for offset, value in enumerate(cells):
        index = start + offset
        marker = " <" if index == pointer else ""
        shown = chr(value) if 32 <= value < 127 else " "
        tape_lines.append(f"  [{index:>5}] {value:>3} {shown}{marker}")
    tape_text = "\n".join(tape_lines)

    return summary_text, output_text, trace_text, tape_text


def load_example(example_name: str) -> str:
    """Load an example program."""
    return EXAMPLE_PROGRAMS.get(example_name, "")


# =============================================================================
# Gradio Interface
# =============================================================================

def create_demo():
    """Create and return the Gradio demo interface."""

    with gr.Blocks(title="bfvm Demo", theme=gr.themes.Soft()) as demo:
        gr.Markdown("""
        # bfvm: byte-tape program runner

        Programs are translated once into an op sequence with a precomputed
        jump table, then stepped against a fixed-size byte tape.

        **Pipeline**: `source -> translate -> ops + jump table -> step -> tape/ports`
        """)

        with gr.Row():
            with gr.Column(scale=2):
                gr.Markdown("### Program")

                example_dropdown = gr.Dropdown(
                    choices=list(EXAMPLE_PROGRAMS.keys()),
                    value="Hello World",
                    label="Load Example"
                )

                program_input = gr.Textbox(
                    value=EXAMPLE_PROGRAMS["Hello World"],
                    label="Source Code",
                    lines=15,
                    placeholder="Enter program here..."
                )

                input_text = gr.Textbox(
                    value="",
                    label="Input",
                    lines=2
                )

                gr.Markdown("### Settings")

                with gr.Row():
                    eof_radio = gr.Radio(
                        choices=["error", "0", "255"],
                        value="error",
                        label="End of Input",
                        info="What ',' reads once input runs out"
                    )
                    tape_size = gr.Number(
                        value=30000,
                        precision=0,
                        label="Tape Size"
                    )
                    max_steps = gr.Slider(
                        minimum=100,
                        maximum=1000000,
                        value=100000,
                        step=100,
                        label="Max Steps"
                    )

                run_button = gr.Button("Run Program", variant="primary")

            with gr.Column(scale=3):
                with gr.Row():
                    summary_output = gr.Textbox(
                        label="Summary",
                        lines=10,
                        interactive=False
                    )
                    tape_output = gr.Textbox(
                        label="Tape",
                        lines=10,
                        interactive=False
                    )

                program_output = gr.Textbox(
                    label="Output",
                    lines=4,
                    interactive=False
                )

                trace_output = gr.Textbox(
                    label="Execution Trace",
                    lines=20,
                    interactive=False
                )

        with gr.Accordion("Instruction Reference", open=False):
            gr.Markdown("""
            | Symbol | Effect |
            |--------|--------|
            | `>` | Move tape pointer right |
            | `<` | Move tape pointer left |
            | `+` | Increment cell (255 wraps to 0) |
            | `-` | Decrement cell (0 wraps to 255) |
            | `.` | Output cell |
            | `,` | Read one byte into cell |
            | `[` | Skip past matching `]` if cell is 0 |
            | `]` | Jump back past matching `[` if cell is not 0 |

            Every other character is a comment. Moving off either end of
            the tape stops the program with a tape bounds error.
            """)

        example_dropdown.change(
            fn=load_example,
            inputs=[example_dropdown],
            outputs=[program_input]
        )

        run_button.click(
            fn=run_program,
            inputs=[program_input, input_text, eof_radio, tape_size, max_steps],
            outputs=[summary_output, program_output, trace_output, tape_output]
        )

    return demo


# =============================================================================
# Main
# =============================================================================

if __name__ == "__main__":
    demo = create_demo()
    demo.launch(
        share=False,
        server_name="0.0.0.0",
        server_port=7861,
        show_error=True
    )
