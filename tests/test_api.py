from datetime import date

from app.routers.exports import get_render_surface, get_save_target
from app.main import app
from app.services.pdf_capture import FileSaveTarget

from conftest import make_token
from test_pdf_capture import FakeSurface

THIS_YEAR = date.today().year


def _guest(apartment_id, **overrides):
    body = {
        "apartment_id": apartment_id,
        "guest_name": "Ana Silva",
        "guest_phone": "+351 912 345 678",
        "guest_email": "ANA@example.com ",
        "guest_address": "Rua das Flores 10, Porto",
        "people_count": 2,
        "linen": "Com Roupa",
        "check_in": f"{THIS_YEAR}-01-10",
        "check_out": f"{THIS_YEAR}-01-15",
    }
    body.update(overrides)
    return body


def _apartment(client, auth, name="T2 Ribeira"):
    r = client.post("/apartments/", json={"name": name}, headers=auth)
    assert r.status_code == 200, r.text
    return r.json()["id"]


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_requires_token(client):
    assert client.get("/stays/").status_code == 401
    bad = {"Authorization": f"Bearer {make_token(secret='wrong')}"}
    assert client.get("/stays/", headers=bad).status_code == 401
    expired = {"Authorization": f"Bearer {make_token(minutes=-5)}"}
    assert client.get("/stays/", headers=expired).status_code == 401


def test_apartments_crud(client, auth):
    assert client.post("/apartments/", json={"name": " x "}, headers=auth).status_code == 400
    b = _apartment(client, auth, "Beira Mar")
    a = _apartment(client, auth, "Alfama")
    names = [x["name"] for x in client.get("/apartments/", headers=auth).json()]
    assert names == ["Alfama", "Beira Mar"]
    assert client.delete(f"/apartments/{a}", headers=auth).status_code == 204
    assert [x["id"] for x in client.get("/apartments/", headers=auth).json()] == [b]


def test_apartment_with_stays_cannot_be_deleted(client, auth):
    apartment_id = _apartment(client, auth)
    assert client.post("/stays/", json=_guest(apartment_id), headers=auth).status_code == 200
    r = client.delete(f"/apartments/{apartment_id}", headers=auth)
    assert r.status_code == 409


def test_create_stay_derives_nights_and_year(client, auth):
    apartment_id = _apartment(client, auth)
    r = client.post("/stays/", json=_guest(apartment_id), headers=auth)
    assert r.status_code == 200, r.text
    stay = r.json()
    assert stay["nights_count"] == 5
    assert stay["year"] == THIS_YEAR
    assert stay["guest_email"] == "ana@example.com"
    assert stay["apartment"]["name"] == "T2 Ribeira"


def test_create_stay_validation_names_field(client, auth):
    apartment_id = _apartment(client, auth)
    r = client.post("/stays/", json=_guest(apartment_id, guest_phone="abc"), headers=auth)
    assert r.status_code == 400
    assert r.json()["detail"]["field"] == "guest_phone"
    r = client.post(
        "/stays/",
        json=_guest(apartment_id, check_out=f"{THIS_YEAR}-01-10"),
        headers=auth,
    )
    assert r.json()["detail"]["field"] == "check_out"
    r = client.post("/stays/", json=_guest(apartment_id, linen="Talvez"), headers=auth)
    assert r.json()["detail"]["field"] == "linen"


def test_stays_are_scoped_to_owner(client, auth, other_auth):
    apartment_id = _apartment(client, auth)
    stay_id = client.post("/stays/", json=_guest(apartment_id), headers=auth).json()["id"]
    assert client.get("/stays/", headers=other_auth).json() == []
    assert client.get(f"/stays/{stay_id}", headers=other_auth).status_code == 404
    r = client.post("/stays/", json=_guest(apartment_id), headers=other_auth)
    assert r.status_code == 403


def test_filter_and_recency(client, auth):
    apartment_id = _apartment(client, auth)
    jan = client.post("/stays/", json=_guest(apartment_id), headers=auth).json()["id"]
    feb = client.post(
        "/stays/",
        json=_guest(apartment_id, guest_name="Rui Sousa", check_in=f"{THIS_YEAR}-01-30", check_out=f"{THIS_YEAR}-02-02"),
        headers=auth,
    ).json()["id"]

    all_ids = [s["id"] for s in client.get("/stays/", headers=auth).json()]
    assert all_ids == [feb, jan]

    february = client.get("/stays/", params={"year": THIS_YEAR, "month": 2}, headers=auth).json()
    assert [s["id"] for s in february] == [feb]

    r = client.get("/stays/", params={"month": 13}, headers=auth)
    assert r.status_code == 400
    assert r.json()["detail"]["field"] == "month"
    r = client.get("/stays/", params={"year": THIS_YEAR + 1}, headers=auth)
    assert r.json()["detail"]["field"] == "year"


def test_update_and_delete(client, auth):
    apartment_id = _apartment(client, auth)
    stay_id = client.post("/stays/", json=_guest(apartment_id), headers=auth).json()["id"]
    r = client.put(
        f"/stays/{stay_id}",
        json={"check_out": f"{THIS_YEAR}-01-12", "notes": "  Late check-in "},
        headers=auth,
    )
    assert r.status_code == 200, r.text
    assert r.json()["nights_count"] == 2
    assert r.json()["notes"] == "Late check-in"
    assert r.json()["guest_name"] == "Ana Silva"

    assert client.delete(f"/stays/{stay_id}", headers=auth).status_code == 204
    assert client.get(f"/stays/{stay_id}", headers=auth).status_code == 404


def test_search_and_grouped(client, auth):
    apartment_id = _apartment(client, auth, "Casa do Mar")
    client.post("/stays/", json=_guest(apartment_id), headers=auth)
    client.post(
        "/stays/",
        json=_guest(apartment_id, guest_name="Rui Sousa", check_in=f"{THIS_YEAR}-03-01", check_out=f"{THIS_YEAR}-03-04"),
        headers=auth,
    )
    found = client.get("/stays/search", params={"q": "rui"}, headers=auth).json()
    assert [s["guest_name"] for s in found] == ["Rui Sousa"]
    assert len(client.get("/stays/search", params={"q": "casa do mar"}, headers=auth).json()) == 2

    grouped = client.get("/stays/grouped", params={"year": THIS_YEAR}, headers=auth).json()
    assert [g["year"] for g in grouped] == [THIS_YEAR]
    assert [m["month"] for m in grouped[0]["months"]] == [3, 1]


def test_calendar_endpoint(client, auth):
    apartment_id = _apartment(client, auth)
    a = client.post("/stays/", json=_guest(apartment_id), headers=auth).json()["id"]
    b = client.post(
        "/stays/",
        json=_guest(apartment_id, guest_name="Rui Sousa", check_in=f"{THIS_YEAR}-01-15", check_out=f"{THIS_YEAR}-01-18"),
        headers=auth,
    ).json()["id"]
    r = client.get("/exports/calendar", params={"apartment_id": apartment_id, "year": THIS_YEAR, "month": 1}, headers=auth)
    assert r.status_code == 200, r.text
    data = r.json()
    assert len(data["cells"]) == 42
    by_day = {c["day"]: c for c in data["cells"]}
    turnover = by_day[f"{THIS_YEAR}-01-15"]
    assert turnover["kind"] == "turnover"
    assert turnover["colors"] == [data["colors"][str(a)], data["colors"][str(b)]]
    assert by_day[f"{THIS_YEAR}-01-18"]["kind"] == "departure"


def test_export_requires_year_and_month(client, auth):
    r = client.get("/exports/print", params={"year": THIS_YEAR}, headers=auth)
    assert r.status_code == 400
    assert r.json()["detail"]["field"] == "month"


def test_print_page(client, auth):
    apartment_id = _apartment(client, auth)
    client.post("/stays/", json=_guest(apartment_id, guest_name="<b>Ana</b>"), headers=auth)
    r = client.get("/exports/print", params={"apartment_id": apartment_id, "year": THIS_YEAR, "month": 1}, headers=auth)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert r.text.count("<script") == 1
    assert "&lt;b&gt;Ana&lt;/b&gt;" in r.text
    assert "T2 Ribeira" in r.text


def test_pdf_export_as_download(client, auth):
    apartment_id = _apartment(client, auth)
    client.post("/stays/", json=_guest(apartment_id), headers=auth)
    surface = FakeSurface()
    app.dependency_overrides[get_render_surface] = lambda: surface
    app.dependency_overrides[get_save_target] = lambda: FileSaveTarget("")
    r = client.post("/exports/pdf", params={"apartment_id": apartment_id, "year": THIS_YEAR, "month": 1}, headers=auth)
    assert r.status_code == 200, r.text
    assert r.headers["content-type"] == "application/pdf"
    assert r.headers["x-save-method"] == "download"
    assert f'registo-t2-ribeira-{THIS_YEAR}-01.pdf' in r.headers["content-disposition"]
    assert r.content.startswith(b"%PDF")
    assert surface.calls[-1] == "teardown"


def test_pdf_export_saved_to_directory(client, auth, tmp_path):
    apartment_id = _apartment(client, auth)
    client.post("/stays/", json=_guest(apartment_id), headers=auth)
    app.dependency_overrides[get_render_surface] = lambda: FakeSurface()
    app.dependency_overrides[get_save_target] = lambda: FileSaveTarget(str(tmp_path))
    r = client.post("/exports/pdf", params={"year": THIS_YEAR, "month": 1}, headers=auth)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["method"] == "saved"
    assert (tmp_path / f"registo-todos-{THIS_YEAR}-01.pdf").exists()


def test_pdf_export_pipeline_failure_reports_stage(client, auth):
    apartment_id = _apartment(client, auth)
    app.dependency_overrides[get_render_surface] = lambda: FakeSurface(missing_root=True)
    app.dependency_overrides[get_save_target] = lambda: FileSaveTarget("")
    r = client.post("/exports/pdf", params={"apartment_id": apartment_id, "year": THIS_YEAR, "month": 1}, headers=auth)
    assert r.status_code == 500
    assert r.json()["detail"]["stage"] == "root"


def test_filter_rejects_non_ascii_digits(client, auth):
    r = client.get("/stays/", params={"month": "²"}, headers=auth)
    assert r.status_code == 400
    assert r.json()["detail"]["field"] == "month"
