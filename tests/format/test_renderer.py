"""Tests for ``accesslog.format.renderer``: rendering compiled formats."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest
from structlog.testing import capture_logs

from accesslog.core.errors import RegistrationError
from accesslog.core.settings import DEFAULT_FORMAT
from accesslog.format.parser import compile_format
from accesslog.format.registry import TagRegistry
from accesslog.format.renderer import AccessLogFormat, render
from accesslog.format.segments import Direction


def _render(fmt: str, ctx, registry: TagRegistry | None = None) -> str:
    return render(compile_format(fmt), ctx, registry or TagRegistry())


class TestLiteralRendering:
    @pytest.mark.parametrize("text", ["", "plain", "  spaced\tout  ", "ünïcödé [x] (y)"])
    def test_literal_only_is_unchanged(self, text, ctx, make_context):
        assert _render(text, ctx) == text
        assert _render(text, make_context(status=500, body_size=0)) == text

    def test_percent_escape(self, ctx):
        assert _render("100%%", ctx) == "100%"
        assert _render("%%s", ctx) == "%s"


class TestBuiltinDirectives:
    def test_status_and_size(self, make_context):
        assert _render("%s %b", make_context(status=200, body_size=12)) == "200 12"

    def test_timestamp_is_utc_second_precision(self, ctx):
        assert _render("%t", ctx) == "2024-03-09T14:05:07"

    def test_timestamp_converted_to_utc(self, make_context):
        tz = timezone(timedelta(hours=2))
        ctx = make_context(start_time=datetime(2024, 3, 9, 16, 5, 7, tzinfo=tz))
        assert _render("%t", ctx) == "2024-03-09T14:05:07"

    def test_elapsed_seconds_and_millis(self, make_context):
        ctx = make_context(elapsed_ns=278_000)
        assert _render("%T", ctx) == "0.000278"
        assert _render("%D", ctx) == "0.278000"

    def test_elapsed_large(self, make_context):
        ctx = make_context(elapsed_ns=1_500_000_000)
        assert _render("%T|%D", ctx) == "1.500000|1500.000000"

    def test_request_line_without_query(self, ctx):
        assert _render("%r", ctx) == "GET /index HTTP/1.1"

    def test_request_line_with_query(self, make_context):
        ctx = make_context(method="POST", path="/items", query="page=2&q=a%20b")
        assert _render("%r", ctx) == "POST /items?page=2&q=a%20b HTTP/1.1"

    def test_request_parts(self, make_context):
        ctx = make_context(method="PUT", path="/a/b", query="x=1", http_version="HTTP/2")
        assert _render("%M %U %Q %V", ctx) == "PUT /a/b x=1 HTTP/2"

    def test_empty_query_is_placeholder(self, ctx):
        assert _render("%Q", ctx) == "-"

    def test_remote_addr(self, ctx, make_context):
        assert _render("%a", ctx) == "127.0.0.1"
        assert _render("%a", make_context(remote_addr=None)) == "-"


class TestHeaders:
    def test_request_header_case_insensitive(self, make_context):
        ctx = make_context(request_headers={"User-Agent": "curl/8.0"})
        assert _render("%{user-agent}i", ctx) == "curl/8.0"
        assert _render("%{USER-AGENT}i", ctx) == "curl/8.0"

    def test_response_header(self, make_context):
        ctx = make_context(response_headers={"Content-Type": "text/plain"})
        assert _render("%{content-type}o", ctx) == "text/plain"

    def test_request_and_response_headers_are_separate(self, make_context):
        ctx = make_context(request_headers={"X-Id": "req"}, response_headers={"X-Id": "res"})
        assert _render("%{X-Id}i %{X-Id}o", ctx) == "req res"

    def test_absent_header(self, ctx):
        assert _render('"%{Referer}i"', ctx) == '"-"'

    def test_multi_valued_header(self, make_context):
        ctx = make_context(response_headers={"Set-Cookie": ["a=1", "b=2"]})
        assert _render("%{set-cookie}o", ctx) == '["a=1","b=2"]'


class TestSupplementedDirectives:
    def test_environment_variable(self, ctx, monkeypatch):
        monkeypatch.setenv("ACCESSLOG_TEST_NODE", "node-7")
        assert _render("%{ACCESSLOG_TEST_NODE}e", ctx) == "node-7"

    def test_missing_environment_variable(self, ctx, monkeypatch):
        monkeypatch.delenv("ACCESSLOG_TEST_MISSING", raising=False)
        assert _render("%{ACCESSLOG_TEST_MISSING}e", ctx) == "-"

    def test_real_ip_from_forwarded_for(self, make_context):
        ctx = make_context(request_headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})
        assert _render("%a(%{r}a)", ctx) == "127.0.0.1(%{r}a)"
        assert _render("%{r}a", ctx) == "203.0.113.5"

    def test_real_ip_from_forwarded(self, make_context):
        ctx = make_context(request_headers={"Forwarded": 'for="198.51.100.17";proto=https'})
        assert _render("%{r}a", ctx) == "198.51.100.17"

    def test_real_ip_falls_back_to_peer(self, ctx, make_context):
        assert _render("%{r}a", ctx) == "127.0.0.1"
        assert _render("%{r}a", make_context(remote_addr=None)) == "-"


class TestSubFormat:
    def test_sub_format_appended(self, make_context):
        assert _render("%b(bytes)", make_context(body_size=12)) == "12(bytes)"

    def test_sub_format_not_evaluated(self, make_context):
        ctx = make_context(status=404)
        assert _render("%s(%T %%)", ctx) == "404(%T %%)"

    def test_sub_format_on_placeholder(self, ctx):
        assert _render("%{missing}xi(user)", ctx) == "-(user)"


class TestCustomTags:
    def test_registered_request_tag(self, ctx):
        registry = TagRegistry().register_request_tag("X", lambda req: "hi")
        assert _render("%{X}xi", ctx, registry) == "hi"

    def test_unregistered_tag_is_placeholder(self, ctx):
        assert _render("%{X}xi", ctx) == "-"

    def test_response_tag_receives_response_view(self, make_context):
        registry = TagRegistry().register_response_tag(
            "sz", lambda res: f"{res.status}/{res.body_size}"
        )
        assert _render("%{sz}xo", make_context(status=201, body_size=3), registry) == "201/3"

    def test_request_tag_receives_request_view(self, make_context):
        registry = TagRegistry().register_request_tag(
            "hdrs", lambda req: ",".join(f"{k}:{v[0]}" for k, v in req.headers.items())
        )
        ctx = make_context(request_headers={"Host": "example.org", "Accept": "*/*"})
        assert _render("{%{hdrs}xi}", ctx, registry) == "{Host:example.org,Accept:*/*}"

    def test_direction_is_respected(self, ctx):
        registry = TagRegistry().register_request_tag("X", lambda req: "req")
        assert _render("%{X}xo", ctx, registry) == "-"

    def test_last_registration_wins(self, ctx):
        tpl = compile_format("%{X}xi")
        registry = TagRegistry().register_request_tag("X", lambda req: "first")
        assert render(tpl, ctx, registry) == "first"
        registry.register_request_tag("X", lambda req: "second")
        assert render(tpl, ctx, registry) == "second"

    def test_non_string_result_is_stringified(self, ctx):
        registry = TagRegistry().register_request_tag("n", lambda req: 42)
        assert _render("%{n}xi", ctx, registry) == "42"

    def test_failing_evaluator_degrades_to_placeholder(self, ctx):
        def boom(req):
            raise RuntimeError("nope")

        registry = TagRegistry().register_request_tag("bad", boom)
        with capture_logs() as logs:
            line = _render("%s %{bad}xi %b", ctx, registry)
        assert line == "200 - 12"
        assert logs[0]["event"] == "custom_tag_failed"
        assert logs[0]["label"] == "bad"


class TestDeterminism:
    def test_render_twice_is_identical(self, make_context):
        ctx = make_context(request_headers={"User-Agent": "x"})
        fmt = AccessLogFormat().register_request_tag("u", lambda req: req.method)
        assert fmt.render(ctx) == fmt.render(ctx)

    def test_shared_format_renders_concurrently(self, make_context):
        fmt = (
            AccessLogFormat('%a "%r" %s %b %{user}xi %{len}xo')
            .register_request_tag("user", lambda req: req.headers.get("x-user") or "-")
            .register_response_tag("len", lambda res: res.body_size * 2)
            .freeze()
        )
        contexts = [
            make_context(path=f"/item/{i}", body_size=i, request_headers={"X-User": f"u{i}"})
            for i in range(50)
        ]
        expected = [fmt.render(c) for c in contexts]

        with ThreadPoolExecutor(max_workers=8) as pool:
            lines = list(pool.map(fmt.render, contexts * 4))

        assert lines == expected * 4
        assert lines[7] == '127.0.0.1 "GET /item/7 HTTP/1.1" 200 7 u7 14'


class TestAccessLogFormat:
    def test_default_format(self, make_context):
        ctx = make_context(request_headers={"User-Agent": "curl/8.0"})
        fmt = AccessLogFormat()
        assert fmt.source == DEFAULT_FORMAT
        assert fmt.render(ctx) == '127.0.0.1 "GET /index HTTP/1.1" 200 12 "-" "curl/8.0" 0.000278'

    def test_full_example_format(self, make_context):
        fmt = AccessLogFormat(
            "%t  %a  %r %s %b(bytes) %T(seconds) %D(milliseconds) %{ALL}xi"
        ).register_request_tag("ALL", lambda req: "{" + req.path + "}")
        line = fmt.render(make_context())
        assert line == (
            "2024-03-09T14:05:07  127.0.0.1  GET /index HTTP/1.1 200 12(bytes) "
            "0.000278(seconds) 0.278000(milliseconds) {/index}"
        )

    def test_unreferenced_label_warns_but_registers(self, ctx):
        with capture_logs() as logs:
            fmt = AccessLogFormat("%s").register_request_tag("ghost", lambda req: "x")
        assert fmt.registry.lookup(Direction.REQUEST, "ghost") is not None
        assert [e["event"] for e in logs if e["log_level"] == "warning"] == [
            "custom_tag_unreferenced"
        ]
        assert fmt.render(ctx) == "200"

    def test_rejected_registration_does_not_warn(self):
        fmt = AccessLogFormat("%s").freeze()
        with capture_logs() as logs:
            with pytest.raises(RegistrationError):
                fmt.register_request_tag("ghost", lambda req: "x")
        assert [e["event"] for e in logs] == []

    def test_freeze_returns_self(self):
        fmt = AccessLogFormat("%s")
        assert fmt.freeze() is fmt
        assert fmt.registry.frozen
