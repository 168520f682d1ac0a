"""Tests for skill registration and permission-gated dispatch."""

import asyncio
import inspect

import pytest
import structlog

import bevel.config.settings as config_settings
from bevel.agent.agent import Bevel
from bevel.config.settings import BevelSettings
from bevel.exceptions import OperationNotFoundError
from bevel.permission.approval import ApprovalQueue
from bevel.permission.exceptions import PermissionDeniedError, PolicyError
from bevel.skill.definition import define_skill


class Recorder:
    """Handler that records its calls."""

    def __init__(self, result=None):
        self.calls: list[tuple[tuple, dict]] = []
        self.result = result

    async def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return self.result


def _make_test_skill(secret: Recorder | None = None, askable: Recorder | None = None):
    return define_skill(
        name="test",
        description="A test skill",
        operations={
            "greet": {
                "description": "Says hello",
                "default_permission": "allow",
                "tags": ["greeting"],
                "handler": lambda name: f"hello {name}",
            },
            "secret": {
                "description": "A secret operation",
                "default_permission": "deny",
                "handler": secret or Recorder("secret"),
            },
            "askable": {
                "description": "Requires permission",
                "handler": askable or Recorder("asked"),
            },
        },
    )


class TestRegistration:
    def test_use_exposes_namespace(self):
        agent = Bevel().use(_make_test_skill())
        assert "test" in agent
        assert agent.skills == ["test"]
        assert callable(agent.test.greet)
        assert agent["test"]["greet"] is agent.test.greet
        assert agent.test.greet.qualified_name == "test.greet"

    def test_use_chains(self):
        other = define_skill(
            "other",
            "Another skill",
            {"ping": {"description": "Ping", "handler": lambda: "pong"}},
        )
        agent = Bevel(default_permission="allow").use(_make_test_skill()).use(other)
        assert agent.skills == ["test", "other"]
        assert set(agent.other) == {"ping"}

    def test_register_alias(self):
        agent = Bevel()
        assert agent.register(_make_test_skill()) is agent

    def test_no_handler_runs_on_registration(self):
        secret, askable = Recorder(), Recorder()
        Bevel(default_permission="allow").use(_make_test_skill(secret, askable))
        assert secret.calls == []
        assert askable.calls == []

    def test_unknown_skill_attribute(self):
        with pytest.raises(AttributeError):
            Bevel().missing

    def test_unknown_operation_attribute(self):
        agent = Bevel().use(_make_test_skill())
        with pytest.raises(AttributeError):
            agent.test.missing

    def test_skill_name_colliding_with_method(self):
        skill = define_skill(
            "search", "Shadowed", {"run": {"description": "Run", "handler": lambda: 1}}
        )
        agent = Bevel().use(skill)
        assert callable(agent.search)
        assert "run" in agent["search"]

    @pytest.mark.asyncio
    async def test_bound_operation_does_not_expose_handler(self):
        secret = Recorder("secret")
        agent = Bevel().use(_make_test_skill(secret=secret))

        bound = agent.test.secret
        assert not hasattr(bound, "__wrapped__")
        assert inspect.unwrap(bound) is bound
        assert bound.__doc__ == "A secret operation"

        with pytest.raises(PermissionDeniedError):
            await inspect.unwrap(bound)()
        assert secret.calls == []

    def test_rejects_non_skill(self):
        with pytest.raises(TypeError):
            Bevel().use({"name": "x", "description": "y", "operations": {}})

    def test_invalid_default_permission(self):
        with pytest.raises(PolicyError):
            Bevel(default_permission="sometimes")

    def test_invalid_policy(self):
        with pytest.raises(PolicyError):
            Bevel(permissions={"git.*": "yes"})

    def test_default_permission_is_ask(self):
        assert Bevel().default_permission == "ask"

    @pytest.mark.asyncio
    async def test_reregister_replaces(self):
        first = define_skill(
            "git",
            "Git v1",
            {
                "status": {"description": "Status v1", "handler": lambda: "v1"},
                "log": {"description": "Show commit logs", "handler": lambda: "log"},
            },
        )
        second = define_skill(
            "git",
            "Git v2",
            {"status": {"description": "Status v2", "handler": lambda: "v2"}},
        )
        agent = Bevel(default_permission="allow").use(first).use(second)

        assert agent.skills == ["git"]
        assert await agent.git.status() == "v2"
        assert "log" not in agent.git
        with pytest.raises(OperationNotFoundError):
            await agent.call("git.log")
        assert [r.qualified_name for r in agent.search("")] == ["git.status"]
        assert agent.get_skill("git") is second


class TestDispatch:
    @pytest.mark.asyncio
    async def test_allowed_sync_handler(self):
        agent = Bevel().use(_make_test_skill())
        assert await agent.test.greet("world") == "hello world"

    @pytest.mark.asyncio
    async def test_denied_never_invokes_handler(self):
        secret = Recorder("secret")
        agent = Bevel().use(_make_test_skill(secret=secret))

        with pytest.raises(PermissionDeniedError) as exc_info:
            await agent.test.secret()

        assert exc_info.value.qualified_name == "test.secret"
        assert secret.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", ["Deny", "ALLOW", "yes", "", None])
    async def test_unrecognised_policy_level_denies(self, level):
        askable = Recorder("asked")
        agent = Bevel(
            default_permission="allow", on_permission_request=lambda op, args: True
        ).use(_make_test_skill(askable=askable))
        agent.permissions["test.askable"] = level

        with pytest.raises(PermissionDeniedError):
            await agent.test.askable()
        assert askable.calls == []

    @pytest.mark.asyncio
    async def test_ask_approved(self):
        askable = Recorder("asked")
        requests = []

        async def approve(operation, args):
            requests.append((operation, args))
            return True

        agent = Bevel(on_permission_request=approve).use(_make_test_skill(askable=askable))

        assert await agent.test.askable() == "asked"
        assert requests == [("test.askable", [])]
        assert len(askable.calls) == 1

    @pytest.mark.asyncio
    async def test_ask_sync_callback(self):
        agent = Bevel(on_permission_request=lambda op, args: True).use(_make_test_skill())
        assert await agent.test.askable() == "asked"

    @pytest.mark.asyncio
    async def test_ask_rejected(self):
        askable = Recorder("asked")
        agent = Bevel(on_permission_request=lambda op, args: False).use(
            _make_test_skill(askable=askable)
        )

        with pytest.raises(PermissionDeniedError):
            await agent.test.askable()
        assert askable.calls == []

    @pytest.mark.asyncio
    async def test_ask_falsy_result_denies(self):
        agent = Bevel(on_permission_request=lambda op, args: None).use(_make_test_skill())
        with pytest.raises(PermissionDeniedError):
            await agent.test.askable()

    @pytest.mark.asyncio
    async def test_ask_without_callback_denies(self):
        askable = Recorder("asked")
        agent = Bevel(default_permission="ask").use(_make_test_skill(askable=askable))

        with pytest.raises(PermissionDeniedError):
            await agent.test.askable()
        assert askable.calls == []

    @pytest.mark.asyncio
    async def test_callback_error_propagates(self):
        askable = Recorder("asked")

        async def broken(operation, args):
            raise RuntimeError("approval service down")

        agent = Bevel(on_permission_request=broken).use(_make_test_skill(askable=askable))

        with pytest.raises(RuntimeError, match="approval service down"):
            await agent.test.askable()
        assert askable.calls == []

    @pytest.mark.asyncio
    async def test_callback_receives_args(self):
        requests = []
        askable = Recorder("ok")

        def approve(operation, args):
            requests.append((operation, args))
            return True

        agent = Bevel(on_permission_request=approve).use(_make_test_skill(askable=askable))

        await agent.test.askable("a", 1)
        await agent.test.askable("b", flag=True)

        assert requests == [
            ("test.askable", ["a", 1]),
            ("test.askable", ["b", {"flag": True}]),
        ]
        assert askable.calls == [(("a", 1), {}), (("b",), {"flag": True})]

    @pytest.mark.asyncio
    async def test_handler_error_propagates_unchanged(self):
        error = ValueError("boom")

        async def fail():
            raise error

        skill = define_skill("x", "X", {"fail": {"description": "Fails", "handler": fail}})
        agent = Bevel(default_permission="allow").use(skill)

        with pytest.raises(ValueError) as exc_info:
            await agent.x.fail()
        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_failure_does_not_block_other_calls(self):
        async def fail():
            raise ValueError("boom")

        skill = define_skill(
            "x",
            "X",
            {
                "fail": {"description": "Fails", "handler": fail},
                "ok": {"description": "Works", "handler": lambda: "ok"},
            },
        )
        agent = Bevel(default_permission="allow").use(skill)

        with pytest.raises(ValueError):
            await agent.x.fail()
        assert await agent.x.ok() == "ok"
        with pytest.raises(ValueError):
            await agent.x.fail()

    @pytest.mark.asyncio
    async def test_policy_overrides_operation_default(self):
        agent = Bevel(permissions={"test.secret": "allow"}).use(_make_test_skill())
        assert await agent.test.secret() == "secret"

    @pytest.mark.asyncio
    async def test_wildcard_policy(self):
        agent = Bevel(permissions={"test.*": "allow"}).use(_make_test_skill())
        assert await agent.test.secret() == "secret"
        assert await agent.test.askable() == "asked"

    @pytest.mark.asyncio
    async def test_policy_mutation_applies_at_call_time(self):
        policy = {}
        agent = Bevel(permissions=policy).use(_make_test_skill())

        with pytest.raises(PermissionDeniedError):
            await agent.test.secret()

        policy["test.secret"] = "allow"
        assert await agent.test.secret() == "secret"

        agent.permissions["test.greet"] = "deny"
        with pytest.raises(PermissionDeniedError):
            await agent.test.greet("world")

    @pytest.mark.asyncio
    async def test_operation_bound_to_log_context(self):
        seen = []

        def capture(*args, **kwargs):
            seen.append(structlog.contextvars.get_contextvars())
            return True

        skill = define_skill(
            "x", "X", {"trace": {"description": "Captures context", "handler": capture}}
        )
        agent = Bevel(on_permission_request=capture).use(skill)

        with structlog.contextvars.bound_contextvars(session_id="s-1"):
            await agent.x.trace()
            assert structlog.contextvars.get_contextvars() == {"session_id": "s-1"}

        # Approval callback, then handler
        assert seen == [
            {"session_id": "s-1", "operation": "x.trace"},
            {"session_id": "s-1", "operation": "x.trace"},
        ]
        assert "operation" not in structlog.contextvars.get_contextvars()

    @pytest.mark.asyncio
    async def test_call_by_qualified_name(self):
        agent = Bevel().use(_make_test_skill())
        assert await agent.call("test.greet", "you") == "hello you"

    @pytest.mark.asyncio
    async def test_call_unknown(self):
        agent = Bevel().use(_make_test_skill())
        with pytest.raises(OperationNotFoundError):
            await agent.call("test.missing")
        with pytest.raises(OperationNotFoundError):
            await agent.call("nodot")

    def test_resolve(self):
        agent = Bevel(permissions={"test.askable": "allow"}).use(_make_test_skill())
        assert agent.resolve("test.greet") == "allow"
        assert agent.resolve("test.secret") == "deny"
        assert agent.resolve("test.askable") == "allow"
        with pytest.raises(OperationNotFoundError):
            agent.resolve("git.push")

    @pytest.mark.asyncio
    async def test_concurrent_calls_not_serialized(self):
        gate = asyncio.Event()

        async def slow():
            await gate.wait()
            return "slow"

        skill = define_skill(
            "x",
            "X",
            {
                "slow": {"description": "Slow", "handler": slow},
                "fast": {"description": "Fast", "handler": lambda: "fast"},
            },
        )
        agent = Bevel(default_permission="allow").use(skill)

        pending = asyncio.create_task(agent.x.slow())
        assert await agent.x.fast() == "fast"
        gate.set()
        assert await pending == "slow"


class TestApprovalQueueIntegration:
    @pytest.mark.asyncio
    async def test_pending_until_responded(self):
        approvals = ApprovalQueue()
        askable = Recorder("asked")
        agent = Bevel(on_permission_request=approvals).use(_make_test_skill(askable=askable))

        task = asyncio.create_task(agent.test.askable("x"))
        for _ in range(100):
            if approvals.pending():
                break
            await asyncio.sleep(0)

        [pending] = approvals.pending()
        assert pending.operation == "test.askable"
        assert pending.args == ["x"]
        assert not task.done()
        assert askable.calls == []

        approvals.respond(pending.id, True)
        assert await task == "asked"
        assert len(askable.calls) == 1

    @pytest.mark.asyncio
    async def test_timeout_is_denial(self):
        approvals = ApprovalQueue(timeout=0.01)
        askable = Recorder("asked")
        agent = Bevel(on_permission_request=approvals).use(_make_test_skill(askable=askable))

        with pytest.raises(PermissionDeniedError):
            await agent.test.askable()
        assert askable.calls == []


class TestFromSettings:
    def test_env_policy_overrides_file(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text("permissions:\n  test.*: deny\n  test.greet: deny\n", encoding="utf-8")

        settings = BevelSettings(
            default_permission="allow",
            permissions={"test.greet": "allow"},
            permissions_file=str(path),
        )
        agent = Bevel.from_settings(settings).use(_make_test_skill())

        assert agent.default_permission == "allow"
        assert agent.permissions == {"test.*": "deny", "test.greet": "allow"}
        assert agent.resolve("test.greet") == "allow"
        assert agent.resolve("test.askable") == "deny"

    def test_defaults(self):
        agent = Bevel.from_settings(BevelSettings())
        assert agent.default_permission == "ask"
        assert agent.permissions == {}

    def test_uses_global_settings(self, monkeypatch):
        monkeypatch.setattr(
            config_settings,
            "settings",
            BevelSettings(default_permission="deny", permissions={"test.greet": "allow"}),
        )
        agent = Bevel.from_settings().use(_make_test_skill())

        assert agent.default_permission == "deny"
        assert agent.resolve("test.greet") == "allow"
        assert agent.resolve("test.askable") == "deny"
