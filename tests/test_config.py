from researchhub.core.config import Settings


def test_postgres_url_pins_psycopg2_driver():
    settings = Settings(
        postgres_user="alice",
        postgres_password="secret",
        postgres_host="db",
        postgres_port=5433,
        postgres_db="research",
    )
    assert settings.postgres_url == "postgresql+psycopg2://alice:secret@db:5433/research"
