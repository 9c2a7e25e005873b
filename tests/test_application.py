import random

import pytest

from secretsanta.application import ServiceConfig, new_application
from secretsanta.apptypes import Chat, ChatType, Person
from secretsanta.errors import AlreadyExistsError, ForbiddenError

ADMIN = Person(telegram_user_id=1)
GROUP = Chat(admin=ADMIN, telegram_chat_id=-100, chat_type=ChatType.GROUP)


def _enrolled_app(config, people):
    app = new_application(config)
    app.commands.register_new_chat_and_version.handle(GROUP)
    for person in people:
        app.commands.enroll.handle(GROUP, person)
    return app


def test_full_round_produces_a_ring():
    people = [Person(telegram_user_id=i) for i in (1, 2, 3)]
    app = _enrolled_app(ServiceConfig(), people)

    app.commands.magic.handle(GROUP, ADMIN)
    magic = app.queries.get_magic.handle(GROUP, ADMIN)

    assert len(magic.pairs) == len(people)
    assert sorted(p.giver.telegram_user_id for p in magic.pairs) == [1, 2, 3]
    assert sorted(p.receiver.telegram_user_id for p in magic.pairs) == [1, 2, 3]
    assert all(p.giver != p.receiver for p in magic.pairs)


def test_receiver_query_agrees_with_draw():
    people = [Person(telegram_user_id=i) for i in (1, 2, 3)]
    app = _enrolled_app(ServiceConfig(), people)
    app.commands.magic.handle(GROUP, ADMIN)
    magic = app.queries.get_magic.handle(GROUP, ADMIN)

    for pair in magic.pairs:
        assert app.queries.get_my_receiver.handle(GROUP, pair.giver) == pair.receiver


def test_seeded_generator_gives_repeatable_draws():
    people = [Person(telegram_user_id=i) for i in (1, 2, 3, 4, 5)]
    first = _enrolled_app(ServiceConfig(rng=random.Random(7)), people)
    second = _enrolled_app(ServiceConfig(rng=random.Random(7)), people)
    first.commands.magic.handle(GROUP, ADMIN)
    second.commands.magic.handle(GROUP, ADMIN)

    assert first.queries.get_magic.handle(GROUP, ADMIN) == second.queries.get_magic.handle(
        GROUP, ADMIN
    )


def test_database_file_is_shared_between_applications(tmp_path):
    config = ServiceConfig(database=tmp_path / "santa.db")
    first = new_application(config)
    first.commands.register_new_chat_and_version.handle(GROUP)
    first.commands.enroll.handle(GROUP, ADMIN)

    second = new_application(config)
    assert second.queries.list_participants.handle(GROUP) == [ADMIN]
    with pytest.raises(AlreadyExistsError):
        second.commands.register_new_chat_and_version.handle(GROUP)


def test_magic_needs_the_admin():
    app = _enrolled_app(ServiceConfig(), [ADMIN, Person(telegram_user_id=2)])
    with pytest.raises(ForbiddenError):
        app.commands.magic.handle(GROUP, Person(telegram_user_id=2))