"""Tests for the host permission broker."""

import anyio
import pytest

from calnotify.application.use_cases import PermissionGate
from calnotify.domain.entities import PermissionState

pytestmark = pytest.mark.anyio


async def test_granted_state_resolves_without_prompt(host):
    host.state = PermissionState.GRANTED
    gate = PermissionGate(host)

    assert await gate.request() is True
    assert host.prompts == 0
    assert gate.push_control_enabled is True


async def test_denied_state_never_prompts_again(host):
    host.state = PermissionState.DENIED
    gate = PermissionGate(host)

    assert await gate.request() is False
    assert host.prompts == 0
    assert gate.push_control_enabled is False


async def test_default_state_prompts_once(host):
    gate = PermissionGate(host)
    granted = []
    gate.on_granted(lambda: granted.append(True))

    assert gate.current_state() is PermissionState.DEFAULT
    assert await gate.request() is True
    assert await gate.request() is True
    assert host.prompts == 1
    assert granted == [True]


async def test_concurrent_requests_share_one_prompt(host):
    host.prompt_gate = anyio.Event()
    gate = PermissionGate(host)
    results = []

    async def _ask():
        results.append(await gate.request())

    async with anyio.create_task_group() as task_group:
        task_group.start_soon(_ask)
        task_group.start_soon(_ask)
        await anyio.sleep(0.01)
        host.prompt_gate.set()

    assert results == [True, True]
    assert host.prompts == 1


async def test_missing_host_behaves_as_denied():
    gate = PermissionGate(None)

    assert gate.current_state() is PermissionState.DENIED
    assert await gate.request() is False
