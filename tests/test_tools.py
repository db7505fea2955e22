"""End-to-end stroke tests driving the tools with synthetic input."""

import numpy as np
import pytest

from pixel_brush import brush
from pixel_brush.config import BrushParameters, ToolConfiguration
from pixel_brush.layer import LayerStack
from pixel_brush.pressure import InputSample
from pixel_brush.surface import LayerSurface
from pixel_brush.tools import (
    CloneTool,
    EraserTool,
    HealTool,
    Modifiers,
    PencilTool,
    ToolContext,
    create_registry,
)

from conftest import RecordingSurface

ALT = Modifiers(alt=True)


class TestPencil:
    def test_straight_stroke(self, make_tool, surface, history):
        tool = make_tool(PencilTool, size=20, hardness=100, spacing=25)
        tool.on_input_start(InputSample(10, 50))
        tool.on_input_move(InputSample(60, 50))

        # one stamp on press, then ceil(50 / 5) along the segment
        assert tool.session.stamp_count == 11
        assert history.saves == 0

        tool.on_input_end()
        assert not tool.is_drawing
        assert history.saves == 1
        assert history.immediate_saves == 0
        for x in (10, 35, 60):
            assert surface.image[50, x, 3] == 255
        assert surface.image[10, 10, 3] == 0

    def test_renders_are_coalesced(self, make_tool, surface, scheduler):
        tool = make_tool(PencilTool, size=4, spacing=25)
        tool.on_input_start(InputSample(10, 10))
        for x in range(11, 40):
            tool.on_input_move(InputSample(x, 10))
        assert surface.renders == 0

        scheduler.run()
        assert surface.renders == 1

        tool.on_input_move(InputSample(60, 10))
        tool.on_input_end()
        assert surface.renders == 2
        scheduler.run()
        assert surface.renders == 2

    def test_pen_pressure_changes_size(self, make_tool):
        tool = make_tool(PencilTool, size=20, pressure_enabled=True, pressure_size=True)
        tool.on_input_start(InputSample(50, 50, pressure=0.0, device="pen"))
        assert tool.session.dynamics.size == pytest.approx(6)

    def test_mouse_ignores_pressure(self, make_tool):
        tool = make_tool(PencilTool, size=20, pressure_enabled=True, pressure_size=True)
        tool.on_input_start(InputSample(50, 50, pressure=0.0, device="mouse"))
        assert tool.session.dynamics.size == 20

    def test_configuration_is_snapshotted_per_stroke(self, context):
        config = ToolConfiguration(BrushParameters(size=20, stabilizer_strength=0))
        tool = PencilTool()
        tool.init(config, context)

        tool.on_input_start(InputSample(50, 50))
        config.update(size=4)
        assert tool.session.params.size == 20
        tool.on_input_end()

        tool.on_input_start(InputSample(50, 50))
        assert tool.session.params.size == 4

    def test_events_without_stroke_are_ignored(self, make_tool, history):
        tool = make_tool(PencilTool)
        tool.on_input_move(InputSample(10, 10))
        tool.on_input_end()
        assert history.saves == 0

    def test_stabilizer_lags_pointer(self, make_tool):
        tool = make_tool(PencilTool, stabilizer_strength=100, spacing=1000)
        tool.on_input_start(InputSample(0, 0))
        tool.on_input_move(InputSample(10, 0))
        assert tool.session.last_point == pytest.approx((5, 0))


class TestSurfaceFailures:
    def test_locked_surface_aborts_without_raising(self, make_tool, surface, history):
        surface.locked = True
        tool = make_tool(PencilTool)
        tool.on_input_start(InputSample(10, 10))
        assert not tool.is_drawing
        tool.on_input_end()
        assert history.saves == 0
        assert not surface.image.any()

    def test_lock_mid_stroke_keeps_painted_stamps(self, make_tool, surface, history):
        tool = make_tool(PencilTool, size=10)
        tool.on_input_start(InputSample(10, 10))
        surface.locked = True
        tool.on_input_move(InputSample(40, 10))

        assert not tool.is_drawing
        assert history.saves == 1
        assert surface.image[10, 10, 3] == 255

        tool.on_input_end()
        assert history.saves == 1

    def test_mask_failure_skips_one_stamp(self, make_tool, monkeypatch, history):
        real = brush.rasterize_mask
        calls = []

        def flaky(size, hardness):
            calls.append(size)
            if len(calls) == 1:
                raise MemoryError("out of memory")
            return real(size, hardness)

        monkeypatch.setattr(brush, "rasterize_mask", flaky)
        tool = make_tool(PencilTool, size=10, hardness=50, spacing=25)
        tool.on_input_start(InputSample(10, 10))
        assert tool.is_drawing
        assert tool.session.stamp_count == 0

        tool.on_input_move(InputSample(30, 10))
        assert tool.session.stamp_count == 8

        tool.on_input_end()
        assert history.saves == 1

    def test_removed_layer_cancels_stroke(self, history, scheduler):
        stack = LayerStack()
        stack.init_blank(50, 50)
        layer = stack.add_layer("Layer 1")
        context = ToolContext(surface=LayerSurface(stack), history=history, scheduler=scheduler)
        registry = create_registry(ToolConfiguration(BrushParameters(stabilizer_strength=0)), context)
        registry.attach(stack)

        registry.on_input_start(InputSample(10, 10))
        assert registry.active.is_drawing
        stack.remove_layer(layer)
        assert not registry.active.is_drawing

        registry.on_input_end()
        assert history.saves == 0

    def test_removing_another_layer_keeps_stroke(self, history, scheduler):
        stack = LayerStack()
        stack.init_blank(50, 50)
        other = stack.add_layer("Layer 0")
        target = stack.add_layer("Layer 1")
        context = ToolContext(surface=LayerSurface(stack), history=history, scheduler=scheduler)
        registry = create_registry(ToolConfiguration(BrushParameters(stabilizer_strength=0)), context)
        registry.attach(stack)

        registry.on_input_start(InputSample(10, 10))
        stack.remove_layer(other)
        assert registry.active.is_drawing
        assert stack.active_layer is target

        registry.on_input_move(InputSample(40, 10))
        registry.on_input_end()
        assert target.image[10, 40, 3] == 255
        assert history.saves == 1

    def test_heal_abort_commits_immediately(self, make_tool, surface, history):
        tool = make_tool(HealTool, size=10)
        tool.on_input_start(InputSample(10, 10), ALT)
        tool.on_input_start(InputSample(50, 50))
        surface.locked = True
        tool.on_input_move(InputSample(60, 50))

        assert not tool.is_drawing
        assert history.immediate_saves == 1
        assert history.saves == 0

    def test_heal_cancel_commits_immediately(self, make_tool, history):
        tool = make_tool(HealTool, size=10)
        tool.on_input_start(InputSample(50, 50))
        tool.cancel()
        assert history.immediate_saves == 1
        assert history.saves == 0


class TestEraser:
    def test_erase_then_restore(self, make_tool, surface, history):
        surface.image[:] = 255
        tool = make_tool(EraserTool, size=10, hardness=100)

        tool.on_input_start(InputSample(50, 50))
        tool.on_input_end()
        assert surface.image[50, 50, 3] == 0

        tool.on_input_start(InputSample(50, 50), ALT)
        assert tool.mode == "anti-erase"
        tool.on_input_end()
        assert surface.image[50, 50, 3] == 255
        assert not tool.anti_erase
        assert history.saves == 2

    def test_hard_edge_rounds_points_and_ignores_hardness(self, make_tool, context):
        tool = make_tool(lambda: EraserTool(hard_edge=True), size=10, hardness=0,
                         stabilizer_strength=80)
        tool.on_input_start(InputSample(10.4, 10.6))
        assert tool.session.last_point == (10.0, 11.0)
        assert len(context.mask_cache) == 0


class TestClone:
    def test_modifier_click_only_sets_source(self, make_tool, surface, history):
        tool = make_tool(CloneTool)
        tool.on_input_start(InputSample(10, 10), ALT)
        assert not tool.is_drawing
        assert tool.anchor.source == (10, 10)
        tool.on_input_end()
        assert history.saves == 0
        assert surface.reads == []

    def test_source_follows_the_stroke(self, make_tool, surface, history):
        tool = make_tool(CloneTool, size=10, spacing=300)
        tool.on_input_start(InputSample(10, 10), ALT)
        tool.on_input_start(InputSample(50, 50))
        tool.on_input_move(InputSample(80, 50))
        tool.on_input_end()

        # each stamp reads the source box then the destination box
        assert surface.reads[0] == (5, 5, 10, 10)
        assert surface.reads[1] == (45, 45, 10, 10)
        assert surface.reads[2] == (35, 5, 10, 10)
        assert surface.reads[3] == (75, 45, 10, 10)
        assert tool.anchor.source == (40, 10)
        assert history.saves == 1
        assert history.immediate_saves == 0

    def test_copies_pixels(self, make_tool, surface):
        surface.image[:, :20] = (0, 255, 0, 255)
        tool = make_tool(CloneTool, size=10)
        tool.on_input_start(InputSample(10, 50), ALT)
        tool.on_input_start(InputSample(70, 50))
        tool.on_input_end()
        assert tuple(surface.image[50, 70]) == (0, 255, 0, 255)

    def test_without_source_uses_first_point(self, make_tool, surface):
        surface.image[:] = (1, 2, 3, 255)
        tool = make_tool(CloneTool, size=10)
        tool.on_input_start(InputSample(30, 30))
        tool.on_input_end()
        assert tool.anchor.source == (30, 30)
        assert np.all(surface.image == (1, 2, 3, 255))


class TestHeal:
    def test_commits_immediately(self, make_tool, surface, history):
        tool = make_tool(HealTool, size=10)
        tool.on_input_start(InputSample(10, 10), ALT)
        tool.on_input_start(InputSample(50, 50))
        tool.on_input_end()
        assert history.immediate_saves == 1
        assert history.saves == 0
        assert surface.renders == 1

    def test_stroke_entirely_off_surface(self, history, scheduler):
        surface = RecordingSurface(20, 20)
        context = ToolContext(surface=surface, history=history, scheduler=scheduler)
        tool = HealTool()
        tool.init(BrushParameters(stabilizer_strength=0), context)

        tool.on_input_start(InputSample(200, 200), ALT)
        tool.on_input_start(InputSample(300, 300))
        tool.on_input_move(InputSample(320, 300))
        tool.on_input_end()

        assert surface.reads == []
        assert surface.puts == []
        assert history.immediate_saves == 1


class TestRegistry:
    def test_default_tools(self, context):
        registry = create_registry(ToolConfiguration(), context)
        assert registry.names == ["pencil", "eraser", "clone", "heal"]
        assert registry.active.name == "pencil"

    def test_unknown_tool(self, context):
        registry = create_registry(ToolConfiguration(), context)
        with pytest.raises(KeyError):
            registry.get("smudge")

    def test_switching_ends_stroke_and_commits(self, context, surface, history):
        registry = create_registry(ToolConfiguration(BrushParameters(stabilizer_strength=0)), context)
        registry.on_input_start(InputSample(10, 10))
        registry.on_input_move(InputSample(40, 10))
        pencil = registry.active
        registry.select("eraser")
        assert not pencil.is_drawing
        assert surface.image[10, 40, 3] == 255
        assert history.saves == 1

        registry.on_input_end()
        assert history.saves == 1

    def test_switching_before_any_stamp_commits_nothing(self, context, surface, history):
        surface.locked = True
        registry = create_registry(ToolConfiguration(BrushParameters(stabilizer_strength=0)), context)
        registry.on_input_start(InputSample(10, 10))
        registry.select("eraser")
        assert history.saves == 0

    def test_tools_share_configuration(self, context):
        config = ToolConfiguration()
        registry = create_registry(config, context)
        config.update(size=33, stabilizer_strength=0)
        registry.select("eraser")
        registry.on_input_start(InputSample(10, 10))
        assert registry.active.session.params.size == 33
