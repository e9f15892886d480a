import pytest

from chatvision.client import ApiError, AuthState, ChatComposer, ChatVisionClient, ComposerError
from chatvision.clients import HEADLINE_FALLBACKS

PNG = b"\x89PNG\r\n\x1a\n" + b"\x01" * 16


@pytest.fixture
def auth(tmp_path):
    return AuthState(tmp_path / "auth.json")


@pytest.fixture
def api(client, auth):
    return ChatVisionClient(auth=auth, http=client)


@pytest.fixture
def logged_in(api):
    api.register("ada", "lovelace")
    return api.login("ada", "lovelace")


def test_register_does_not_log_in(api, auth):
    user = api.register("ada", "lovelace")
    assert user["username"] == "ada"
    assert not auth.logged_in


def test_login_persists_and_logout_clears(api, auth, logged_in):
    assert auth.path.exists()
    reloaded = AuthState(auth.path)
    assert reloaded.user == logged_in
    assert reloaded.token == auth.token
    assert api.me() == logged_in

    api.logout()
    assert not auth.path.exists()
    assert not AuthState(auth.path).logged_in


def test_errors_surface_as_api_error(api):
    api.register("ada", "lovelace")
    with pytest.raises(ApiError) as exc:
        api.register("ada", "again")
    assert exc.value.status_code == 409
    assert exc.value.message == "Username already exists"

    with pytest.raises(ApiError) as exc:
        api.login("ada", "wrong")
    assert exc.value.status_code == 401


def test_pages_need_login(api):
    with pytest.raises(ApiError):
        api.dashboard()
    with pytest.raises(ApiError):
        ChatComposer(api).open()


def test_headline(api, fake_openai):
    fake_openai.responses.error = RuntimeError("down")
    assert api.headline() in HEADLINE_FALLBACKS


def test_text_turn(api, logged_in, fake_openai):
    composer = ChatComposer(api, "s1")
    composer.open()

    result = composer.send("  hello  ")

    assert result.user_message["content"] == "hello"
    assert result.reply == "Hello from the model"
    assert [m["role"] for m in composer.history()] == ["user", "ai"]
    assert fake_openai.responses.calls[0]["input"] == "hello"


def test_image_turn(api, logged_in, fake_openai):
    composer = ChatComposer(api, "s1")
    composer.open()

    result = composer.send("", image=PNG)

    assert result.user_message["content"] == "Analyze this image"
    assert result.user_message["imageData"].startswith("data:image/png;base64,")
    assert result.reply_message["imageData"] is None
    content = fake_openai.responses.calls[0]["input"][0]["content"]
    assert content[1]["text"] == "Analyze this image"


def test_empty_send_is_rejected(api, logged_in, fake_openai):
    composer = ChatComposer(api, "s1")
    with pytest.raises(ValueError):
        composer.send("   ")
    assert composer.history() == []


def test_model_failure_leaves_orphaned_user_turn(api, logged_in, fake_openai):
    composer = ChatComposer(api, "s1")
    composer.open()
    fake_openai.responses.error = RuntimeError("provider down")

    with pytest.raises(ComposerError) as exc:
        composer.send("are you there?")

    history = composer.history()
    assert len(history) == 1
    assert history[0]["role"] == "user"
    assert exc.value.orphaned_message == history[0]


def test_dashboard(api, logged_in):
    for i in range(7):
        ChatComposer(api, f"s{i}").open()
    ChatComposer(api, "s0").send("hi")

    board = api.dashboard()

    assert board["user"] == logged_in
    assert board["stats"] == {"totalChats": 7, "totalMessages": 1, "imagesAnalyzed": 0}
    assert [s["sessionId"] for s in board["recent_sessions"]] == ["s0", "s1", "s2", "s3", "s4"]


def test_session_ids_default_to_epoch_millis(api):
    composer = ChatComposer(api)
    assert composer.session_id.isdigit()
    assert len(composer.session_id) >= 13
