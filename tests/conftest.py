from collections.abc import Callable, Generator

from pytest import MonkeyPatch, fixture

mp = MonkeyPatch()
mp.setenv("PRODUCTION", "False")
mp.setenv("TESTING", "True")

from sqlalchemy import Select  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from has_filters.db.db_setup import session_context, sql_global_init  # noqa: E402
from has_filters.filters.registry import filter_registry  # noqa: E402
from tests.fixtures.models import SqlAlchemyBase  # noqa: E402


@fixture(autouse=True)
def clean_registry() -> Generator[None, None, None]:
    filter_registry.clear()
    yield
    filter_registry.clear()


@fixture()
def session() -> Generator[Session, None, None]:
    session_factory, engine = sql_global_init("sqlite://")
    SqlAlchemyBase.metadata.create_all(engine)

    with session_context(session_factory) as sess:
        yield sess

    engine.dispose()


@fixture()
def create(session: Session) -> Callable:
    """Adds and commits a model instance, returning it."""

    def _create(model, **values):
        instance = model(**values)
        session.add(instance)
        session.commit()
        return instance

    return _create


@fixture()
def fetch(session: Session) -> Callable[[Select], list]:
    def _fetch(stmt: Select) -> list:
        return list(session.scalars(stmt).all())

    return _fetch
