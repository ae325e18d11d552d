"""
Tests for the command line interface.
"""

import json

import cv2
import pytest

from conftest import SOLVABLE_5, ScriptedAnalysis, draw_board, grid_segments
from queens_vision.inference.pipeline import BoardDetectionPipeline
from queens_vision.main import build_parser, format_regions, format_solution, main


@pytest.fixture
def board_file(tmp_path, board_image):
    pipeline = BoardDetectionPipeline(analysis=ScriptedAnalysis(grid_segments(5)))
    board = pipeline.detect(board_image).board
    path = tmp_path / "board.json"
    path.write_text(json.dumps(board.to_dict()), encoding="utf-8")
    return path


@pytest.fixture
def image_file(tmp_path, board_image):
    path = tmp_path / "puzzle.png"
    cv2.imwrite(str(path), board_image)
    return path


class TestFormatting:
    def test_format_regions(self):
        assert format_regions([[0, 1], [10, 1]]) == "   0  1\n  10  1"

    def test_format_solution(self):
        solution = [[True, False], [False, True]]
        assert format_solution(solution) == "  Q .\n  . Q"
        assert format_solution(solution, [[0, 1], [2, 1]]) == "  Q b\n  c Q"


class TestCommands:
    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 0
        assert "detect" in capsys.readouterr().out

    def test_solve_saved_board(self, board_file, capsys):
        main(["solve", "--board", str(board_file), "--json"])
        payload = json.loads(capsys.readouterr().out)

        assert payload["board"]["regions"] == SOLVABLE_5
        assert sum(q for row in payload["solution"] for q in row) == 5

    def test_solve_text_output(self, board_file, capsys):
        main(["solve", "--board", str(board_file)])
        out = capsys.readouterr().out
        assert "QUEENS SOLUTION" in out
        assert out.count("Q") >= 5

    def test_solve_unsolvable_board(self, tmp_path, unsolvable_regions):
        pipeline = BoardDetectionPipeline(analysis=ScriptedAnalysis(grid_segments(4)))
        board = pipeline.detect(draw_board(unsolvable_regions)).board
        path = tmp_path / "unsolvable.json"
        path.write_text(json.dumps(board.to_dict()), encoding="utf-8")

        with pytest.raises(SystemExit) as excinfo:
            main(["solve", "--board", str(path)])
        assert excinfo.value.code == 1

    def test_detect_writes_board(self, image_file, tmp_path, capsys):
        output = tmp_path / "out.json"
        main(["detect", "--image", str(image_file), "--output", str(output)])

        assert "QUEENS BOARD" in capsys.readouterr().out
        saved = json.loads(output.read_text(encoding="utf-8"))
        assert saved["size"] == 5
        assert saved["regions"] == SOLVABLE_5

    def test_run_json(self, image_file, capsys):
        main(["run", "--image", str(image_file), "--json", "--no-markers"])
        payload = json.loads(capsys.readouterr().out)
        assert payload["board"]["markers"] is None
        assert len(payload["solution"]) == 5

    def test_missing_image(self, tmp_path):
        with pytest.raises(SystemExit) as excinfo:
            main(["detect", "--image", str(tmp_path / "missing.png")])
        assert excinfo.value.code == 1

    def test_blank_image_fails(self, tmp_path, blank_image):
        path = tmp_path / "blank.png"
        cv2.imwrite(str(path), blank_image)
        with pytest.raises(SystemExit) as excinfo:
            main(["run", "--image", str(path)])
        assert excinfo.value.code == 1


def test_flags_reach_config():
    from queens_vision.main import build_config

    args = build_parser().parse_args([
        "detect", "--image", "x.png",
        "--merge-threshold", "12", "--padding", "5",
        "--require-connected", "--no-markers",
    ])
    config = build_config(args)
    assert config.merge_threshold == 12
    assert config.bounds_padding == 5
    assert config.require_connected_regions
    assert not config.detect_markers
