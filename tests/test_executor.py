from __future__ import annotations

import asyncio
import base64
import os

import pytest
from conftest import OTHER_PNG_B64, SAMPLE_PNG_B64, SAMPLE_PNG_BYTES, FakeEngine, GatedEngine, chat_response, data_url, image_part

from nano_banana_mcp.exceptions import UpstreamAPIError
from nano_banana_mcp.executor import TaskExecutor
from nano_banana_mcp.schema import ImageItem, TaskDescriptor, TextItem


def _executor(settings, *outcomes) -> tuple[TaskExecutor, FakeEngine]:
    engine = FakeEngine(*outcomes)
    return TaskExecutor(settings, engine=engine), engine  # type: ignore[arg-type]


class TestRequestConstruction:
    @pytest.mark.asyncio
    async def test_prompt_only_sends_single_text_part(self, settings):
        executor, engine = _executor(settings, chat_response(content="ok"))

        await executor.execute(TaskDescriptor(prompt="Create a blue circle"))

        assert engine.calls == [[{"role": "user", "content": [{"type": "text", "text": "Create a blue circle"}]}]]

    @pytest.mark.asyncio
    async def test_context_images_follow_prompt_in_order(self, settings, workdir):
        files = {"one.png": b"png-bytes", "two.JPEG": b"jpeg-bytes", "three.webp": b"webp-bytes", "four.tiff": b"tiff-bytes"}
        for name, raw in files.items():
            (workdir / name).write_bytes(raw)
        executor, engine = _executor(settings, chat_response(content="ok"))

        await executor.execute(TaskDescriptor(prompt="combine", imagePaths=list(files)))

        (message,) = engine.calls[0]
        parts = message["content"]
        assert len(parts) == 1 + len(files)
        assert parts[0] == {"type": "text", "text": "combine"}
        expected_mimes = ["image/png", "image/jpeg", "image/webp", "application/octet-stream"]
        for part, raw, mime in zip(parts[1:], files.values(), expected_mimes):
            assert part["type"] == "image_url"
            assert part["image_url"]["url"] == data_url(base64.b64encode(raw).decode(), mime)


class TestReadFailures:
    @pytest.mark.asyncio
    async def test_missing_image_aborts_before_network_call(self, settings, workdir):
        (workdir / "present.png").write_bytes(SAMPLE_PNG_BYTES)
        executor, engine = _executor(settings, chat_response(content="unused"))

        result = await executor.execute(TaskDescriptor(prompt="edit", imagePaths=["present.png", "missing.png", "later.png"]))

        assert result.is_error
        assert len(result.content) == 1
        assert isinstance(result.content[0], TextItem)
        assert result.content[0].text.startswith("Error reading image missing.png: ")
        assert engine.calls == []

    @pytest.mark.asyncio
    async def test_directory_path_is_a_read_failure(self, settings, workdir):
        (workdir / "folder.png").mkdir()
        executor, engine = _executor(settings)

        result = await executor.execute(TaskDescriptor(prompt="edit", imagePaths=["folder.png"]))

        assert result.is_error
        assert "folder.png" in result.message
        assert engine.calls == []

    @pytest.mark.asyncio
    async def test_rejected_path_is_a_read_failure(self, settings, workdir):
        executor, engine = _executor(settings)

        result = await executor.execute(TaskDescriptor(prompt="p", imagePaths=["bad\x00.png"]))

        assert result.is_error
        assert len(result.content) == 1
        assert result.message.startswith("Error reading image bad\x00.png: ")
        assert engine.calls == []


class TestSerialization:
    @pytest.mark.asyncio
    async def test_concurrent_executions_never_overlap(self, settings):
        engine = GatedEngine(chat_response(content="first"), chat_response(content="second"))
        executor = TaskExecutor(settings, engine=engine)  # type: ignore[arg-type]

        first = asyncio.create_task(executor.execute(TaskDescriptor(prompt="a")))
        second = asyncio.create_task(executor.execute(TaskDescriptor(prompt="b")))
        await engine.started.wait()
        await asyncio.sleep(0.01)

        assert engine.active == 1
        assert not second.done()

        engine.release.set()
        results = await asyncio.gather(first, second)

        assert engine.max_active == 1
        assert [r.message for r in results] == ["first", "second"]
        assert [call[0]["content"][0]["text"] for call in engine.calls] == ["a", "b"]


class TestResponseHandling:
    @pytest.mark.asyncio
    async def test_upstream_error_is_reported_not_raised(self, settings):
        executor, _ = _executor(settings, UpstreamAPIError('{"message": "Rate limited"}', status_code=429))

        result = await executor.execute(TaskDescriptor(prompt="x"))

        assert result.is_error
        assert result.message == 'OpenRouter API error: {"message": "Rate limited"}'

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, settings):
        executor, _ = _executor(settings, KeyError("choices"))

        with pytest.raises(KeyError):
            await executor.execute(TaskDescriptor(prompt="x"))

    @pytest.mark.asyncio
    async def test_empty_response_is_informational(self, settings, workdir):
        executor, _ = _executor(settings, chat_response(content=None))

        result = await executor.execute(TaskDescriptor(prompt="x", outputPath="never.png"))

        assert not result.is_error
        assert result.message == "Model returned a successful response but no text or images were found."
        assert not (workdir / "never.png").exists()

    @pytest.mark.asyncio
    async def test_without_output_path_nothing_is_written(self, settings, workdir):
        executor, _ = _executor(settings, chat_response(images=[image_part(SAMPLE_PNG_B64)]))

        result = await executor.execute(TaskDescriptor(prompt="x"))

        assert result.content == [ImageItem(data=SAMPLE_PNG_B64, mimeType="image/png")]
        assert list(workdir.iterdir()) == []


class TestOutputPersistence:
    @pytest.mark.asyncio
    async def test_end_to_end_blue_circle(self, settings, workdir):
        executor, _ = _executor(settings, chat_response(content=None, images=[image_part(SAMPLE_PNG_B64)]))

        result = await executor.execute(TaskDescriptor(prompt="Create a blue circle", outputPath="circle.png"))

        expected_path = os.path.join(os.getcwd(), "circle.png")
        assert result.content == [
            ImageItem(data=SAMPLE_PNG_B64, mimeType="image/png"),
            TextItem(text=f"Successfully saved the generated image to: {expected_path}"),
        ]
        assert (workdir / "circle.png").read_bytes() == SAMPLE_PNG_BYTES

    @pytest.mark.asyncio
    async def test_only_first_image_is_saved(self, settings, workdir):
        resp = chat_response(content="Two variants", images=[image_part(SAMPLE_PNG_B64)])
        resp["choices"][0]["message"]["content"] = [image_part(OTHER_PNG_B64)]
        resp["choices"][0]["message"]["images"].append(image_part(OTHER_PNG_B64, "image/jpeg"))
        executor, _ = _executor(settings, resp)

        result = await executor.execute(TaskDescriptor(prompt="x", outputPath="nested/dir/out.png"))

        assert len(result.images) == 3
        assert result.images[1].data == OTHER_PNG_B64
        assert (workdir / "nested" / "dir" / "out.png").read_bytes() == SAMPLE_PNG_BYTES
        assert [p.name for p in (workdir / "nested" / "dir").iterdir()] == ["out.png"]
        assert result.content[-1].text.startswith("Successfully saved the generated image to: ")

    @pytest.mark.asyncio
    async def test_round_trip_bytes(self, settings, tmp_path):
        source = bytes(range(256)) * 4
        b64 = base64.b64encode(source).decode()
        executor, _ = _executor(settings, chat_response(images=[image_part(b64, "image/png")]))
        target = tmp_path / "rt.png"

        await executor.execute(TaskDescriptor(prompt="x", outputPath=str(target)))

        assert target.read_bytes() == source

    @pytest.mark.asyncio
    async def test_save_failure_appends_warning(self, settings, workdir):
        (workdir / "blocker").write_text("file, not a directory")
        executor, _ = _executor(settings, chat_response(images=[image_part(SAMPLE_PNG_B64)]))

        result = await executor.execute(TaskDescriptor(prompt="x", outputPath="blocker/out.png"))

        assert not result.is_error
        assert isinstance(result.content[0], ImageItem)
        assert result.content[-1].text.startswith("Warning: Failed to save image to path: ")

    @pytest.mark.asyncio
    async def test_text_only_response_with_output_path(self, settings, workdir):
        executor, _ = _executor(settings, chat_response(content="I cannot draw that."))

        result = await executor.execute(TaskDescriptor(prompt="x", outputPath="out.png"))

        assert result.content == [TextItem(text="I cannot draw that.")]
        assert not (workdir / "out.png").exists()
