import pytest

from flowmvc.router import (
    ResourceController,
    Router,
    param,
    params_from_environ,
)


def call(app, method, path):
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = status
        captured["headers"] = headers

    body = b"".join(app({"REQUEST_METHOD": method, "PATH_INFO": path}, start_response))
    return int(captured["status"].split()[0]), dict(captured["headers"]), body


def text_app(text, status="200 OK"):
    def app(environ, start_response):
        start_response(status, [("Content-Type", "text/plain")])
        return [text.encode()]

    return app


class Ctrl:
    def _reply(self, letter, environ, start_response):
        start_response("200 OK", [])
        return [(letter + param(environ, "id")).encode()]

    def index(self, environ, start_response):
        return self._reply("i", environ, start_response)

    def new(self, environ, start_response):
        return self._reply("n", environ, start_response)

    def create(self, environ, start_response):
        return self._reply("c", environ, start_response)

    def show(self, environ, start_response):
        return self._reply("s", environ, start_response)

    def edit(self, environ, start_response):
        return self._reply("e", environ, start_response)

    def update(self, environ, start_response):
        return self._reply("u", environ, start_response)

    def destroy(self, environ, start_response):
        return self._reply("d", environ, start_response)


def test_static_route():
    r = Router()
    r.get("/", text_app("ok"))
    status, _, body = call(r, "GET", "/")
    assert status == 200
    assert body == b"ok"


def test_param_route():
    r = Router()

    def handler(environ, start_response):
        start_response("200 OK", [])
        return [param(environ, "id").encode()]

    r.get("/users/:id", handler)
    status, _, body = call(r, "GET", "/users/42")
    assert status == 200
    assert body == b"42"


def test_method_not_allowed():
    r = Router()
    r.get("/onlyget", text_app("get"))
    status, headers, body = call(r, "POST", "/onlyget")
    assert status == 405
    assert body == b"Method Not Allowed\n"
    assert headers["Content-Type"] == "text/plain; charset=utf-8"


def test_not_found():
    r = Router()
    status, _, body = call(r, "GET", "/nope")
    assert status == 404
    assert body == b"404 page not found\n"


def test_custom_not_found_and_method_not_allowed():
    r = Router()
    r.get("/x", text_app("x"))
    r.not_found = text_app("missing", "404 Not Found")
    r.method_not_allowed = text_app("nope", "405 Method Not Allowed")
    assert call(r, "GET", "/y")[2] == b"missing"
    assert call(r, "DELETE", "/x")[2] == b"nope"


def test_trailing_slash_equivalence():
    r = Router()
    r.get("/users", text_app("users"))
    status, _, body = call(r, "GET", "/users/")
    assert status == 200
    assert body == b"users"


def test_multiple_params():
    r = Router()

    def handler(environ, start_response):
        start_response("200 OK", [])
        return [f"{param(environ, 'org_id')}:{param(environ, 'id')}".encode()]

    r.get("/orgs/:org_id/users/:id", handler)
    status, _, body = call(r, "GET", "/orgs/7/users/99")
    assert status == 200
    assert body == b"7:99"


def test_first_registered_route_wins():
    r = Router()
    r.get("/users/new", text_app("static"))
    r.get("/users/:id", text_app("param"))
    assert call(r, "GET", "/users/new")[2] == b"static"
    assert call(r, "GET", "/users/5")[2] == b"param"


def test_segment_count_must_match():
    r = Router()
    r.get("/a/:id", text_app("a"))
    assert call(r, "GET", "/a")[0] == 404
    assert call(r, "GET", "/a/1/2")[0] == 404


def test_named_route_url_generation():
    r = Router()
    r.handle_named("post_show", "GET", "/posts/:id", text_app("show"))
    assert r.url("post_show", {"id": "42"}) == "/posts/42"


def test_missing_param_in_url_generation():
    r = Router()
    r.handle_named("post_show", "GET", "/posts/:id", text_app("show"))
    with pytest.raises(KeyError):
        r.url("post_show", {})


def test_unknown_route_name():
    r = Router()
    with pytest.raises(KeyError):
        r.url("nothing", {})


def test_url_escapes_param_values():
    r = Router()
    r.get_named("file", "/files/:name", text_app("f"))
    assert r.url("file", {"name": "a b/c"}) == "/files/a%20b%2Fc"


def test_root_named_route_url():
    r = Router()
    r.get_named("root", "/", text_app("root"))
    assert r.url("root") == "/"


def test_per_route_middleware_execution():
    r = Router()
    calls = []

    def mw(next_app):
        def wrapped(environ, start_response):
            calls.append("m")
            return next_app(environ, start_response)

        return wrapped

    def handler(environ, start_response):
        calls.append("h")
        start_response("200 OK", [])
        return [b"ok"]

    r.handle_with("GET", "/ok", handler, mw)
    status, _, _ = call(r, "GET", "/ok")
    assert status == 200
    assert "".join(calls) == "mh"


def test_middleware_order_first_is_outermost():
    r = Router()
    calls = []

    def make(tag):
        def mw(next_app):
            def wrapped(environ, start_response):
                calls.append(tag)
                return next_app(environ, start_response)

            return wrapped

        return mw

    def handler(environ, start_response):
        calls.append("h")
        start_response("200 OK", [])
        return [b"done"]

    r.get_with("/x", handler, make("a"), make("b"))
    status, _, body = call(r, "GET", "/x")
    assert status == 200
    assert body == b"done"
    assert calls == ["a", "b", "h"]


def test_named_with_middleware_sees_params():
    r = Router()
    seen = []

    def mw(next_app):
        def wrapped(environ, start_response):
            seen.append(params_from_environ(environ))
            return next_app(environ, start_response)

        return wrapped

    r.handle_named_with("item", "GET", "/items/:id", text_app("i"), mw)
    call(r, "GET", "/items/3")
    assert seen == [{"id": "3"}]
    assert r.url("item", {"id": "9"}) == "/items/9"


def test_resources_register_names():
    r = Router()
    r.resources("users", Ctrl())
    assert r.url("users_show", {"id": "7"}) == "/users/7"
    assert r.url("users_edit", {"id": "7"}) == "/users/7/edit"
    assert r.url("users_index") == "/users"
    assert r.url("users_new") == "/users/new"


@pytest.mark.parametrize(
    "method,path,expected",
    [
        ("GET", "/users", b"i"),
        ("GET", "/users/new", b"n"),
        ("POST", "/users", b"c"),
        ("GET", "/users/7", b"s7"),
        ("GET", "/users/7/edit", b"e7"),
        ("PUT", "/users/7", b"u7"),
        ("PATCH", "/users/7", b"u7"),
        ("DELETE", "/users/7", b"d7"),
    ],
)
def test_resources_dispatch(method, path, expected):
    r = Router()
    r.resources("/users/", Ctrl())
    status, _, body = call(r, method, path)
    assert status == 200
    assert body == expected


def test_resources_empty_base_rejected():
    with pytest.raises(ValueError):
        Router().resources("", Ctrl())


def test_controller_satisfies_protocol():
    ctrl = Ctrl()
    assert isinstance(ctrl, ResourceController)
    assert not isinstance(object(), ResourceController)
    r = Router()
    r.resources("items", ctrl)
    status, _, body = call(r, "GET", "/items/1")
    assert status == 200
    assert body == b"s1"


def test_pattern_must_start_with_slash():
    with pytest.raises(ValueError):
        Router().get("users", text_app("x"))


def test_duplicate_route_name_rejected():
    r = Router()
    r.get_named("a", "/a", text_app("a"))
    with pytest.raises(ValueError):
        r.post_named("a", "/b", text_app("b"))


def test_empty_route_name_rejected():
    with pytest.raises(ValueError):
        Router().handle_named("", "GET", "/a", text_app("a"))


def test_method_is_uppercased():
    r = Router()
    r.handle("get", "/lower", text_app("low"))
    assert call(r, "GET", "/lower")[2] == b"low"


def test_param_helpers_without_params():
    assert params_from_environ({}) == {}
    assert params_from_environ(None) == {}
    assert param({"PATH_INFO": "/"}, "id") == ""