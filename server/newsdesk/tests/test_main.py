"""
Tests for newsdesk.main background task supervision
"""
import asyncio
import logging

from newsdesk.main import _log_task_exit


async def test_crashed_task_is_logged(caplog):
    async def boom():
        raise ValueError("bad redis url")

    task = asyncio.create_task(boom(), name="tick-listener")
    await asyncio.gather(task, return_exceptions=True)

    with caplog.at_level(logging.ERROR, logger="newsdesk"):
        _log_task_exit(task)

    assert "Background task tick-listener crashed" in caplog.text
    assert "bad redis url" in caplog.text


async def test_cancelled_task_is_quiet(caplog):
    task = asyncio.create_task(asyncio.sleep(10))
    await asyncio.sleep(0)
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)

    with caplog.at_level(logging.ERROR, logger="newsdesk"):
        _log_task_exit(task)

    assert caplog.text == ""


async def test_clean_exit_is_quiet(caplog):
    async def done():
        return None

    task = asyncio.create_task(done())
    await task

    with caplog.at_level(logging.ERROR, logger="newsdesk"):
        _log_task_exit(task)

    assert caplog.text == ""
