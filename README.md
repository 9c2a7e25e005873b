# secretsanta

A Telegram bot that organises a Secret Santa gift exchange inside a group chat.
People enrol in the chat, someone runs the draw, and every participant receives
a private message naming the person they give a present to. Chats, rounds,
participants and draw results are kept in an SQLite database.

## Installing

```
pip install .
```

To run the test suite as well:

```
pip install ".[test]"
pytest
```

## Running the bot

The bot reads two required settings from the environment:

| Variable         | Meaning                                                   |
|------------------|-----------------------------------------------------------|
| `TELEGRAM_TOKEN` | the bot's Telegram token                                  |
| `DATABASE_PATH`  | path of the SQLite database file (created if missing)     |

`secretsanta.cli.load_config` reads them and raises `ConfigError` when either
is missing. Then start the bot:

```
TELEGRAM_TOKEN=token DATABASE_PATH=santa.db secretsanta
```

The bot long-polls Telegram for updates until it receives SIGINT or SIGTERM,
then stops. Log lines are written to standard output as JSON objects with the
keys `_l` (level), `_t` (time) and `_m` (message), plus any key-value fields.
If the configuration is missing, the database cannot be opened or Telegram
cannot be reached at start-up, the failure is logged and the command exits
with status 1.

## Using it in a chat

Add the bot to a group (or send `/start` there) to register the chat and open
its first round. Commands work only in groups and supergroups. Then:

| Command      | What it does                                                             |
|--------------|--------------------------------------------------------------------------|
| `/enroll`    | join the current round                                                   |
| `/disenroll` | leave the current round                                                  |
| `/list`      | list everyone enrolled, with name and `@username` where set              |
| `/magic`     | run the draw and send every giver their receiver in a private message    |
| `/my`        | have the bot resend your own draw result to you in a private message     |
| `/help`      | show the list of commands                                                |
| `/start`     | register the chat (refused in private chats)                             |

Every participant must first open a private chat with the bot and press
*Start*; Telegram does not let bots write to people who have not done so. If
`/my` finds the bot blocked, it answers in the group with
"Please start me in private!".

The draw needs at least two participants. It shuffles them and arranges them
in a single circle, so everyone gives exactly one present and receives exactly
one, and nobody draws themselves. A round can be drawn only once; a second
`/magic` replies that the magic has already happened.

## Using it as a library

The pieces can be used without Telegram:

- `secretsanta.draw.calculate(participants, rng=None)` takes
  `secretsanta.domain.Person` values and an optional `random.Random`, and
  returns a `Magic` holding the giver/receiver pairs; it raises
  `TooFewParticipantsError` below two people. `secretsanta.draw.make_pairs`
  builds the circle from an already ordered list.
- `secretsanta.sqlite_storage.SqliteStorage` stores the game (in memory by
  default) and runs operations in transactions; it implements the abstract
  `secretsanta.storage.Storage` and `Tx`.
- `secretsanta.application.new_application(ServiceConfig(database=...))` builds
  the command handlers (`secretsanta.commands`) and query handlers
  (`secretsanta.queries`) over one `SqliteStorage`.
- `secretsanta.bot.SantaBot` connects an `Application` to a
  `secretsanta.telegram_api.TelegramApi`; `secretsanta.logs.JsonLogger` is the
  JSON logger it is given by the command.

## What it does not do

- There is no chat command to start a new round after a draw: the reply to a
  repeated `/magic` mentions a restart, but the bot answers no such command.
  `RegisterMagicVersionHandler` opens a new round when called from code.
- The chat is not checked against the person who registered it: `/magic` may be
  run by any member of the group.
- Updates are received only by long polling; there is no webhook server.
- Data is kept only in SQLite; no other database is supported.