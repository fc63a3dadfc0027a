"""Tests for clip assembly and output configuration."""

import os
import re

import pytest
import yaml


def _shot(title="s", ref="clip.mp4", mark_in=None, mark_out=None):
    from shotencode.project import Resource, Shot, ShotSource, SourceAnchor

    return Shot(
        title=title,
        source=ShotSource(resources=[Resource(ref=ref)]),
        source_anchor=SourceAnchor(mark_in=mark_in, mark_out=mark_out),
    )


def _write_preset(tmp_path, content: dict) -> str:
    path = tmp_path / "preset.yaml"
    path.write_text(yaml.dump(content))
    return str(path)


class TestAssembleJobItem:
    def test_clip_window_from_marks(self, input_dir):
        from shotencode.job import assemble_job_item

        item = assemble_job_item([_shot(mark_in=5.0, mark_out=10.0)], input_dir)
        clip = item.primary
        assert clip.start == 5.0
        assert clip.end == 10.0
        assert clip.duration == 5.0

    def test_n_shots_give_n_clips_in_order(self, input_dir):
        from shotencode.job import assemble_job_item

        shots = [
            _shot(ref=f"http://media/part{i}.mp4", mark_in=float(i), mark_out=float(i + 2))
            for i in range(5)
        ]
        item = assemble_job_item(shots, input_dir)
        assert len(item.clips) == 5
        assert [os.path.basename(c.path) for c in item.clips] == [
            f"part{i}.mp4" for i in range(5)
        ]
        assert [c.start for c in item.clips] == [0.0, 1.0, 2.0, 3.0, 4.0]

    def test_each_shot_resolved_independently(self, input_dir):
        from shotencode.job import assemble_job_item

        (input_dir / "a_hd.ismv").write_text("media")
        item = assemble_job_item(
            [_shot(ref="a.ism/manifest", mark_out=1.0), _shot(ref="b.mp4", mark_out=1.0)],
            input_dir,
        )
        assert item.clips[0].path == os.path.join(str(input_dir), "a_hd.ismv")
        assert item.clips[1].path == os.path.join(str(input_dir), "b.mp4")

    def test_missing_marks_default_to_zero(self, input_dir):
        from shotencode.job import assemble_job_item

        item = assemble_job_item([_shot()], input_dir)
        assert item.primary.start == 0.0
        # An absent mark-out is kept as 0.0: an empty window the engine rejects.
        assert item.primary.end == 0.0

    def test_missing_mark_out_warns(self, input_dir, caplog):
        from shotencode.job import assemble_job_item

        with caplog.at_level("WARNING", logger="shotencode.job"):
            assemble_job_item([_shot(title="open-ended", mark_in=2.0)], input_dir)
        assert "open-ended" in caplog.text

    def test_output_name_placeholder(self, input_dir):
        from shotencode.job import assemble_job_item

        item = assemble_job_item([_shot(mark_out=1.0)], input_dir)
        assert re.fullmatch(r"[0-9a-f-]{36}\.\{Default Extension\}", item.output_name)

    def test_output_names_unique(self, input_dir):
        from shotencode.job import assemble_job_item

        a = assemble_job_item([_shot(mark_out=1.0)], input_dir)
        b = assemble_job_item([_shot(mark_out=1.0)], input_dir)
        assert a.output_name != b.output_name

    def test_empty_shots_raises(self, input_dir):
        from shotencode.job import assemble_job_item

        with pytest.raises(ValueError, match="No shots"):
            assemble_job_item([], input_dir)

    def test_duration_sums_windows(self, input_dir):
        from shotencode.job import assemble_job_item

        item = assemble_job_item(
            [_shot(mark_in=1.0, mark_out=3.0), _shot(mark_in=0.0, mark_out=1.5)],
            input_dir,
        )
        assert item.duration == pytest.approx(3.5)

    def test_to_dict(self, input_dir):
        from shotencode.job import assemble_job_item

        item = assemble_job_item([_shot(ref="x.mp4", mark_in=1.0, mark_out=2.0)], input_dir)
        d = item.to_dict()
        assert d["resize_mode"] == "Letterbox"
        assert d["preset"] is None
        assert d["clips"] == [
            {"path": os.path.join(str(input_dir), "x.mp4"), "start": 1.0, "end": 2.0},
        ]


class TestConfigureOutput:
    def _item(self):
        from shotencode.job import EncodeJobItem, SourceClip

        return EncodeJobItem(output_name="x.mp4", clips=[SourceClip("a.mp4", 0.0, 1.0)])

    def test_default_resize_mode(self):
        from shotencode.job import ResizeMode

        assert self._item().resize_mode is ResizeMode.LETTERBOX

    def test_stretch(self):
        from shotencode.job import ResizeMode, configure_output
        from shotencode.project import OutputMetadata, OutputSettings

        item = configure_output(self._item(), OutputMetadata(OutputSettings("Stretch")))
        assert item.resize_mode is ResizeMode.STRETCH

    def test_letterbox(self):
        from shotencode.job import ResizeMode, configure_output
        from shotencode.project import OutputMetadata, OutputSettings

        item = self._item()
        item.resize_mode = ResizeMode.STRETCH
        configure_output(item, OutputMetadata(OutputSettings("Letterbox")))
        assert item.resize_mode is ResizeMode.LETTERBOX

    def test_unknown_mode_leaves_default(self):
        from shotencode.job import ResizeMode, configure_output
        from shotencode.project import OutputMetadata, OutputSettings

        item = self._item()
        item.resize_mode = ResizeMode.STRETCH
        configure_output(item, OutputMetadata(OutputSettings("Zoom")))
        assert item.resize_mode is ResizeMode.STRETCH

    def test_mode_match_is_case_sensitive(self):
        from shotencode.job import ResizeMode, configure_output
        from shotencode.project import OutputMetadata, OutputSettings

        item = configure_output(self._item(), OutputMetadata(OutputSettings("stretch")))
        assert item.resize_mode is ResizeMode.LETTERBOX

    def test_generic_metadata_ignored(self):
        from shotencode.job import ResizeMode, configure_output
        from shotencode.project import GenericMetadata

        item = configure_output(self._item(), GenericMetadata())
        assert item.resize_mode is ResizeMode.LETTERBOX

    def test_no_metadata(self):
        from shotencode.job import configure_output

        item = configure_output(self._item(), None)
        assert item.preset is None

    def test_applies_preset(self, tmp_path):
        from shotencode.job import configure_output

        path = _write_preset(tmp_path, {"name": "web", "container": "mkv"})
        item = configure_output(self._item(), None, preset_path=path)
        assert item.preset.name == "web"
        assert item.preset.container == "mkv"
        assert item.preset_path == path

    def test_missing_preset_propagates(self, tmp_path):
        from shotencode.errors import PresetError
        from shotencode.job import configure_output

        with pytest.raises(PresetError):
            configure_output(self._item(), None, preset_path=str(tmp_path / "none.yaml"))
