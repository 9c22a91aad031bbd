# seacrate

seacrate keeps secrets in a folder-like tree and serves them over a small
HTTP API. Every secret value is encrypted with AES-GCM under a master key.
The master key is itself encrypted with a decryption key that is never
stored: it is split into Shamir shares, and a chosen number of those shares
must be handed back to the server before it will read or write secrets.
Until then the instance is *sealed*.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Configuration

By default every command reads `config.yml` from the current directory;
`--config PATH` (given before the command) reads another file:

```yaml
dev: false
encryption:
  algorithm: aes
database:
  database: seacrate.db
```

`encryption.algorithm` must be `aes`; any other value is rejected.
`database.database` is the path of the SQLite file that holds secrets,
folders and metadata. When it is left empty an in-memory database is used,
which is lost when the process ends, so name a file for real use.

Check the file with:

```
seacrate validate
```

It prints the problem and exits with status 1 when the file cannot be read
or is invalid.

## Initialising an instance

```
seacrate init
```

You are asked how many key shares to generate and how many of them are
needed to unseal the instance (at least 2, at most 255, and no more than
the number of shares). The command creates a random master key and a
random decryption key, stores the encrypted master key, the share
threshold and an Argon2id hash of the decryption key in the database, and
writes the base64 shares to `results.json` (or to the path given with
`seacrate init --output PATH`):

```json
{"keys": ["...", "...", "..."]}
```

An instance can be initialised only once; running `init` again against the
same database fails. Hand the shares out to their keepers and remove the
file.

## Running the server

```
seacrate run
```

The API is served by Flask's built-in server on `0.0.0.0`, port 3000. The
server always starts sealed.

### Unsealing

```
GET  /api/v1/system/seal          -> {"status": true}   (true while sealed)
POST /api/v1/system/seal          body: {"part": "<base64 share>"}
```

Submit shares one at a time. Once the threshold is reached the collected
shares are combined, checked against the stored hash, and the master key
is loaded. A wrong combination is answered with `400 Wrong Key`; either
way the collected shares are discarded. Submitting a share while the
instance is unsealed is answered with `400`.

### Secrets

Paths after `/api/v1/secrets/` form a tree; intermediate folders are
created automatically and removed again when they become empty.

```
POST   /api/v1/secrets/app/db/user   body: {"value": "secret"}
GET    /api/v1/secrets/app/db/user   -> {"type": "secret", "secret": {...}}
GET    /api/v1/secrets/app/db        -> {"type": "folder", "content": [...]}
DELETE /api/v1/secrets/app/db/user
```

A folder listing holds the folder's secrets first, then its sub-folders,
each with its `key`, `type` and `created_at`.

Creating a secret fails with `400` when the key already exists, when it
would replace a folder, or when a part of its path is already a secret.
Reading or deleting a missing key answers `404`. While the instance is
sealed every request under `/api/v1/secrets/` is refused with `403`.
Unexpected failures are answered with `500` and a JSON body holding
`error` and `details`.

## Other commands

```
seacrate version
```

prints the version. `seacrate` with no command prints the help.

## What it does not do

- Storage is a local SQLite file only. The `host`, `port`, `username` and
  `password` fields of the `database` section are read and type-checked
  but not used.
- Secrets cannot be updated in place; delete and create them again.
- There is no endpoint to seal a running instance again; restart the
  server to seal it.

## Library use

The building blocks are usable on their own, for example the Shamir
secret sharing over GF(2^8) in `seacrate.shamir`:

```python
from seacrate.shamir import split, combine

shares = split(b"placeholder", 5, 3)
assert combine(shares[:3]) == b"placeholder"
```

Other modules: `seacrate.encryption` (`AesEncryptionEngine`,
`new_encryption_engine`), `seacrate.hashing` (`generate_hash`, `compare`),
`seacrate.database` (`DatabaseEngine`, `open_database`),
`seacrate.config` (`load_config`, `parse_config`) and `seacrate.api`
(`create_app`).