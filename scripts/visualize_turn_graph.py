#!/usr/bin/env python3
"""Export the study group chat-turn graph as a diagram.

Outputs:
- Mermaid source (turn_graph.mmd)
- ASCII graph (turn_graph.txt, when supported by dependencies)
- Optional PNG (turn_graph.png)

Run from repo root:
    python scripts/visualize_turn_graph.py --png
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path


ROOT_DIR = Path(__file__).resolve().parents[1]
BACKEND_DIR = ROOT_DIR / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

# Import after adjusting sys.path.
from langchain_core.runnables.graph import MermaidDrawMethod

from study_group.agents.study_group.graph import build_turn_graph


class _OfflineGenerator:
    """Drawing the graph never calls the generator."""

    async def generate(self, prompt: str, use_extended_reasoning: bool = False) -> str:
        raise RuntimeError("Offline generator cannot produce content")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--output-dir",
        default="artifacts/langgraph_viz",
        help="Output directory (repo-relative or absolute). Default: artifacts/langgraph_viz",
    )
    parser.add_argument("--png", action="store_true", help="Also render a PNG.")
    parser.add_argument(
        "--png-method",
        choices=[m.value for m in MermaidDrawMethod],
        default=MermaidDrawMethod.API.value,
        help="PNG render backend. Default: api",
    )
    return parser.parse_args()


def main() -> int:
    args = _parse_args()

    output_dir = Path(args.output_dir)
    if not output_dir.is_absolute():
        output_dir = ROOT_DIR / output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    visual_graph = build_turn_graph(_OfflineGenerator()).graph.get_graph()

    mermaid_path = output_dir / "turn_graph.mmd"
    mermaid_path.write_text(visual_graph.draw_mermaid(), encoding="utf-8")
    print(f"[ok] mermaid: {mermaid_path}")

    try:
        ascii_path = output_dir / "turn_graph.txt"
        ascii_path.write_text(visual_graph.draw_ascii(), encoding="utf-8")
        print(f"[ok] ascii:   {ascii_path}")
    except Exception as exc:  # pragma: no cover - optional dependency path
        print(f"[skip] ascii: {exc}")

    if args.png:
        try:
            png_path = output_dir / "turn_graph.png"
            png_path.write_bytes(
                visual_graph.draw_mermaid_png(draw_method=MermaidDrawMethod(args.png_method))
            )
            print(f"[ok] png:     {png_path}")
        except Exception as exc:  # pragma: no cover - depends on runtime/network
            print(f"[skip] png: {exc}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
