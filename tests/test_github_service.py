import base64
import json
from unittest.mock import MagicMock

import pytest
import requests

import github_service
from github_service import GitHubService


def _resp(status=200, body=None, headers=None, text=""):
    r = MagicMock(spec=requests.Response)
    r.status_code = status
    r.headers = headers or {}
    r.text = text
    r.json.return_value = body or {}
    return r


def _conteudo(obj, sha="abc"):
    b64 = base64.b64encode(json.dumps(obj).encode("utf-8")).decode("utf-8")
    return {"content": b64, "sha": sha}


@pytest.fixture
def session():
    s = MagicMock(spec=requests.Session)
    s.headers = {}
    return s


@pytest.fixture
def gh(session):
    return GitHubService(token="t0k", repo_full_name="fam/financas", session=session)


@pytest.fixture(autouse=True)
def sem_espera(monkeypatch):
    monkeypatch.setattr(github_service.time, "sleep", lambda s: None)


def test_exige_credenciais():
    with pytest.raises(ValueError):
        GitHubService(token="", repo_full_name="fam/financas")


def test_headers(gh, session):
    assert session.headers["Authorization"] == "token t0k"


def test_get_json(gh, session):
    session.request.return_value = _resp(200, _conteudo([{"id": "f1"}], sha="s1"))
    obj, sha = gh.get_json("data/faturas.json")
    assert obj == [{"id": "f1"}]
    assert sha == "s1"
    args, kwargs = session.request.call_args
    assert args == ("GET", "https://api.github.com/repos/fam/financas/contents/data/faturas.json")
    assert kwargs["params"] == {"ref": "main"}


def test_get_json_404_sem_default(gh, session):
    session.request.return_value = _resp(404)
    assert gh.get_json("data/x.json") == (None, None)


def test_ensure_file_cria_quando_ausente(gh, session):
    session.request.side_effect = [
        _resp(404),
        _resp(201, {"content": {"sha": "novo"}}),
        _resp(200, _conteudo([], sha="novo")),
    ]
    assert gh.ensure_file("data/faturas.json", []) == ([], "novo")
    put = session.request.call_args_list[1]
    assert put.args[0] == "PUT"
    assert put.kwargs["json"]["message"] == "Inicializa data/faturas.json"


def test_put_json_envia_sha_e_conteudo(gh, session):
    session.request.return_value = _resp(200, {"content": {"sha": "s2"}})
    assert gh.put_json("data/faturas.json", [{"valor": "R$ 1,00"}], "msg", sha="s1") == "s2"
    payload = session.request.call_args.kwargs["json"]
    assert payload["sha"] == "s1"
    assert payload["branch"] == "main"
    assert json.loads(base64.b64decode(payload["content"])) == [{"valor": "R$ 1,00"}]


def test_put_json_conflito_rele_sha(gh, session):
    session.request.side_effect = [
        _resp(409),
        _resp(200, _conteudo([], sha="atual")),
        _resp(200, {"content": {"sha": "s3"}}),
    ]
    assert gh.put_json("data/faturas.json", [], "msg", sha="velho") == "s3"
    assert session.request.call_args.kwargs["json"]["sha"] == "atual"


def test_put_json_erro(gh, session):
    session.request.return_value = _resp(422, text="inválido")
    with pytest.raises(RuntimeError, match="422"):
        gh.put_json("data/faturas.json", [], "msg")


def test_retry_em_rate_limit(gh, session):
    session.request.side_effect = [
        _resp(429, headers={"Retry-After": "2"}),
        _resp(200, _conteudo([1])),
    ]
    obj, _ = gh.get_json("data/faturas.json")
    assert obj == [1]
    assert session.request.call_count == 2


def test_retry_em_timeout_e_desiste(gh, session):
    session.request.side_effect = requests.exceptions.Timeout()
    with pytest.raises(requests.exceptions.Timeout):
        gh.get_json("data/faturas.json")
    assert session.request.call_count == gh.max_retries + 1


def test_ping(gh, session):
    session.request.return_value = _resp(200)
    assert gh.ping() is True
