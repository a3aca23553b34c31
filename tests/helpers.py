"""Request helpers shared by the route tests."""
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64


def register(client, name="Ana", email="ana@x.com", password="secret1"):
    return client.post(
        "/auth/registro",
        data={"nombre": name, "email": email, "password": password, "repetir_password": password},
    )


def login(client, email="ana@x.com", password="secret1"):
    return client.post("/auth/login", data={"email": email, "password": password}, follow_redirects=False)


def signed_in(client, notifier, name="Ana", email="ana@x.com", password="secret1"):
    """Register, confirm and log in; the client keeps the session cookie."""
    assert register(client, name, email, password).status_code == 200
    assert client.get(f"/auth/confirmar/{notifier.last_confirmation(email)}").status_code == 200
    resp = login(client, email, password)
    assert resp.status_code == 302
    return client


def listing_form(catalog, **overrides):
    category_id, price_id = catalog
    data = {
        "titulo": "Casa en la playa",
        "descripcion": "Casa con vista al mar",
        "categoria": str(category_id),
        "precio": str(price_id),
        "habitaciones": "3",
        "estacionamiento": "1",
        "wc": "2",
        "calle": "Av. del Mar 123",
        "lat": "19.43",
        "lng": "-99.13",
    }
    data.update(overrides)
    return data


def create_draft(client, catalog, **overrides) -> int:
    resp = client.post("/propiedades/crear", data=listing_form(catalog, **overrides), follow_redirects=False)
    assert resp.status_code == 302, resp.text
    return int(resp.headers["location"].rsplit("/", 1)[-1])


def attach_image(client, listing_id, content=JPEG_BYTES, content_type="image/jpeg"):
    return client.post(
        f"/propiedades/agregar-imagen/{listing_id}",
        files={"imagen": ("casa.jpg", content, content_type)},
        follow_redirects=False,
    )


def set_session_cookie(client, value):
    # Cookies the server sets on testserver are stored under this domain
    client.cookies.set("_token", value, domain="testserver.local")
