from storefront.seed import SEED_CATEGORIES, SEED_PRODUCTS


def test_index_and_health(client):
    assert client.get("/").data == b"App is working"
    assert client.get("/health").get_json() == {"status": "ok"}


def test_unknown_route_returns_json_404(client):
    response = client.get("/api/nowhere")
    assert response.status_code == 404
    assert "message" in response.get_json()


def test_unexpected_errors_are_hidden_behind_an_error_id(app, client):
    def explode():
        raise RuntimeError("database password is hunter2")

    app.add_url_rule("/boom", "boom", explode)

    response = client.get("/boom")
    body = response.get_json()

    assert response.status_code == 500
    assert body["message"] == "Internal server error"
    assert len(body["error_id"]) == 32
    assert "hunter2" not in response.get_data(as_text=True)


def test_seed_command_loads_sample_catalog(app, db):
    db.categories.insert_one({"name": "Stale", "slug": "stale"})

    result = app.test_cli_runner().invoke(args=["seed"])

    assert result.exit_code == 0
    assert f"Seeded {len(SEED_CATEGORIES)} categories and {len(SEED_PRODUCTS)} products." in result.output
    assert db.categories.count_documents({"slug": "stale"}) == 0
    shoes = db.categories.find_one({"slug": "shoes"})
    assert db.products.count_documents({"category": shoes["_id"]}) == 1


def test_promote_admin_command(app, db, register):
    register()
    runner = app.test_cli_runner()

    result = runner.invoke(args=["promote-admin", "A@X.com"])
    assert result.exit_code == 0
    assert "alice1 is now an admin." in result.output
    assert db.users.find_one({"email": "a@x.com"})["role"] == "admin"

    missing = runner.invoke(args=["promote-admin", "ghost@x.com"])
    assert missing.exit_code != 0
    assert "No account registered with ghost@x.com." in missing.output
