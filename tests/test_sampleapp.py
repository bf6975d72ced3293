"""End-to-end tests for the demonstration app's route table."""

import itertools
import json as json_module
import uuid

import pytest

import sampleapp.app as sample
from okapi.testing import TestClient


@pytest.fixture
def app():
    return sample.create_app(environ={})


@pytest.fixture
async def client(app):
    async with TestClient(app) as c:
        yield c


class TestBasics:
    async def test_index(self, client) -> None:
        response = await client.get("/")
        assert response.status == 200
        assert response.text == "index"

    async def test_ping(self, client) -> None:
        assert (await client.get("/ping")).text == "pong"

    async def test_error_is_500_with_message(self, client) -> None:
        response = await client.get("/error")
        assert response.status == 500
        assert "Something went wrong!" in response.text

    async def test_unmatched_path(self, client) -> None:
        response = await client.get("/nonexistent")
        assert response.status == 400
        assert response.text == "Not found"

    async def test_wrong_method_falls_through(self, client) -> None:
        response = await client.post("/ping")
        assert response.status == 400
        assert response.text == "Not found"


class TestAuthentication:
    @pytest.mark.parametrize("path", ["/user", "/john-only", "/user/42"])
    async def test_anonymous_is_denied(self, client, path) -> None:
        response = await client.get(path)
        assert response.status == 401
        assert response.text == "Access Denied"

    async def test_login_then_user(self, client) -> None:
        login = await client.get("/login")
        assert login.text == "Successfully logged in"
        response = await client.get("/user")
        assert response.status == 200
        assert response.text == "John"

    async def test_john_only(self, client) -> None:
        await client.get("/login")
        assert (await client.get("/john-only")).text == "John"

    async def test_admin_user_id(self, client) -> None:
        await client.get("/login")
        response = await client.get("/user/42")
        assert response.status == 200
        assert response.text == "User Id: 42"

    async def test_non_integer_id_does_not_match(self, client) -> None:
        await client.get("/login")
        response = await client.get("/user/abc")
        assert response.status == 400
        assert response.text == "Not found"

    async def test_logout(self, client) -> None:
        await client.get("/login")
        response = await client.get("/logout")
        assert response.text == "Successfully logged out."
        assert (await client.get("/user")).status == 401


class TestViews:
    async def test_person(self, client) -> None:
        response = await client.get("/person")
        assert response.status == 200
        assert response.content_type.startswith("text/html")
        assert response.text.startswith("<!DOCTYPE html>")
        assert "<title>Sample App</title>" in response.text
        assert '<div class="container">' in response.text
        assert '<h3 title="Some title attribute">Hello, Html Node</h3>' in response.text
        assert "<p>Some partial text.</p>" in response.text
        assert '<a href="https://github.com/giraffe-fsharp/Giraffe">GitHub</a>' in response.text


class TestStaticFiles:
    async def test_stylesheet(self, client) -> None:
        response = await client.get("/main.css")
        assert response.status == 200
        assert response.content_type.startswith("text/css")
        assert response.header("cache-control") == "public, max-age=3600"

    async def test_settings_file_is_not_served(self, client) -> None:
        response = await client.get("/../appsettings.json")
        assert response.status == 403

    async def test_unknown_asset_uses_fallback(self, client) -> None:
        response = await client.get("/missing.css")
        assert response.status == 400
        assert response.text == "Not found"


class TestTimestamps:
    async def test_once_vs_everytime(self, monkeypatch) -> None:
        ticks = itertools.count()
        monkeypatch.setattr(sample, "now", lambda: f"tick {next(ticks)}")
        app = sample.create_app(environ={})
        async with TestClient(app) as client:
            once = [(await client.get("/once")).text for _ in range(2)]
            every = [(await client.get("/everytime")).text for _ in range(2)]
        assert once[0] == once[1]
        assert every[0] != every[1]

    def test_now_format(self) -> None:
        value = sample.now()
        assert len(value) == len("01/02/2024 03:04:05")
        assert value[2] == "/" and value[5] == "/"


class TestConfiguration:
    async def test_value_from_settings_file(self, client) -> None:
        response = await client.get("/configured")
        assert response.text == "Hello from the configuration file!"

    async def test_environment_override(self) -> None:
        app = sample.create_app(environ={"OKAPI_HelloMessage": "Hi there"})
        async with TestClient(app) as client:
            assert (await client.get("/configured")).text == "Hi there"

    def test_log_level_from_settings(self, app) -> None:
        assert app.config.log_level == "error"

    def test_secret_key_from_environment(self) -> None:
        app = sample.create_app(environ={"OKAPI_Auth__SecretKey": "k3y"})
        assert app.config.secret_key == "k3y"


class TestUploads:
    FILES = [("first", "a.txt", b"aaa", "text/plain"), ("second", "b.png", b"\x89PNG")]

    async def test_upload(self, client) -> None:
        response = await client.request("GET", "/upload", files=self.FILES)
        assert response.status == 200
        assert response.text == "\na.txt\nb.png"

    async def test_empty_file_input_is_not_listed(self, client) -> None:
        files = [*self.FILES, ("third", "", b"")]
        response = await client.request("GET", "/upload", files=files)
        assert response.text == "\na.txt\nb.png"

    async def test_upload_requires_form(self, client) -> None:
        response = await client.get("/upload", body=b"plain")
        assert response.status == 400
        assert response.text == "bad request"

    async def test_upload2(self, client) -> None:
        response = await client.request("GET", "/upload2", files=self.FILES)
        assert response.text == "\na.txt\nb.png"

    async def test_upload2_without_form_is_fault(self, client) -> None:
        response = await client.get("/upload2", body=b"plain")
        assert response.status == 500


class TestCaching:
    async def test_public_with_duration(self, client) -> None:
        first = await client.get("/cache/1")
        second = await client.get("/cache/1")
        uuid.UUID(first.text)
        assert first.header("cache-control") == "public, max-age=30"
        assert first.text == second.text

    async def test_vary_by_query_keys(self, client) -> None:
        a = await client.get("/cache/2?key1=a&key2=b")
        again = await client.get("/cache/2?key1=a&key2=b&other=z")
        b = await client.get("/cache/2?key1=a&key2=c")
        uuid.UUID(a.text)
        assert a.header("cache-control") == "public, max-age=30"
        assert a.text == again.text
        assert a.text != b.text

    async def test_no_cache(self, client) -> None:
        first = await client.get("/cache/3")
        second = await client.get("/cache/3")
        uuid.UUID(first.text)
        assert first.header("cache-control") == "no-store, no-cache"
        assert first.header("pragma") == "no-cache"
        assert first.text != second.text


class TestCars:
    async def test_valid_car(self, client) -> None:
        car = {"Name": "Mini", "Make": "Austin", "Wheels": 4, "Built": "1959-08-26T00:00:00"}
        response = await client.post("/car", json=car)
        assert response.status == 200
        assert json_module.loads(response.text) == {
            "name": "Mini",
            "make": "Austin",
            "wheels": 4,
            "built": "1959-08-26T00:00:00",
        }

    @pytest.mark.parametrize("wheels", [1, 7])
    async def test_invalid_wheels(self, client, wheels) -> None:
        response = await client.post("/car", json={"Name": "Odd", "Wheels": wheels})
        assert response.status == 400
        assert response.text == "Wheels must be a value between 2 and 6."

    async def test_car_from_query(self, client) -> None:
        response = await client.get("/car?name=Bike&wheels=2")
        assert json_module.loads(response.text)["wheels"] == 2

    async def test_car2_xml(self, client) -> None:
        response = await client.get("/car2?Name=Mini&Make=Austin&Wheels=4")
        assert response.status == 200
        assert response.content_type.startswith("application/xml")
        assert "<Car>" in response.text
        assert "<Wheels>4</Wheels>" in response.text

    async def test_car2_parse_error(self, client) -> None:
        response = await client.post("/car2?wheels=four")
        assert response.status == 400
        assert response.text == "Could not parse value 'four' to type 'int' for field 'wheels'."

    async def test_car2_validation(self, client) -> None:
        response = await client.get("/car2?wheels=9")
        assert response.status == 400
        assert response.text == "Wheels must be a value between 2 and 6."
