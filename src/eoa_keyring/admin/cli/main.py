"""
Keyring Admin CLI - Main entry point.

Manage custodied accounts and approve or reject signing requests.
"""

import asyncio
import json
import sys
from uuid import uuid4

import click
from tabulate import tabulate

from eoa_keyring import __version__
from eoa_keyring.config import StateConfig, config
from eoa_keyring.errors import KeyringError
from eoa_keyring.runtime import close_notifier, configure_logging, open_keyring


def run_keyring(ctx, operation):
    """Open the keyring, run ``operation(keyring)``, and close it."""
    async def runner():
        keyring, notifier = await open_keyring(ctx.obj['config'])
        try:
            return await operation(keyring)
        finally:
            await close_notifier(notifier)

    try:
        return asyncio.run(runner())
    except KeyringError as e:
        click.echo(f"❌ {type(e).__name__}: {e}", err=True)
        raise click.Abort()


def parse_json(value, what):
    try:
        return json.loads(value)
    except ValueError as e:
        raise click.BadParameter(f"{what} is not valid JSON: {e}")


def echo_json(data):
    click.echo(json.dumps(data, indent=2))


@click.group()
@click.version_option(version=__version__)
@click.option('--state-file', type=click.Path(dir_okay=False), help='State file (overrides KEYRING_STATE_PATH)')
@click.pass_context
def cli(ctx, state_file):
    """
    Keyring Admin CLI - Manage custodied accounts and signing requests.

    \b
    Examples:
        keyring-admin account list          List all accounts
        keyring-admin account create        Generate a new account
        keyring-admin request list          Show pending requests
        keyring-admin request approve ID    Sign and release a request
    """
    cfg = config
    if state_file:
        cfg = config.model_copy(update={'state': StateConfig(backend='file', path=state_file)})

    configure_logging(cfg, stream=sys.stderr)
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


# ============== ACCOUNTS ==============

@cli.group()
def account():
    """Manage custodied accounts."""
    pass


@account.command('list')
@click.option('--format', type=click.Choice(['table', 'json']), default='table', help='Output format')
@click.pass_context
def list_accounts(ctx, format):
    """List all accounts."""
    async def operation(keyring):
        return await keyring.list_accounts()

    accounts = run_keyring(ctx, operation)

    if format == 'json':
        echo_json([acc.to_dict() for acc in accounts])
        return

    if not accounts:
        click.echo("No accounts found. Create one with: keyring-admin account create")
        return

    table_data = [
        [acc.id, acc.name or '-', acc.address, acc.type, len(acc.methods)]
        for acc in accounts
    ]
    click.echo(
        tabulate(
            table_data,
            headers=['ID', 'Name', 'Address', 'Type', 'Methods'],
            tablefmt='grid'
        )
    )


@account.command('get')
@click.argument('account_id')
@click.pass_context
def get_account(ctx, account_id):
    """Show one account."""
    async def operation(keyring):
        return await keyring.get_account(account_id)

    echo_json(run_keyring(ctx, operation).to_dict())


@account.command('create')
@click.option('--private-key', help='Private key to import (leave empty to generate new key)')
@click.option('--options', 'options_json', default='{}', help='Account options as JSON object')
@click.pass_context
def create_account(ctx, private_key, options_json):
    """Create a new account."""
    options = parse_json(options_json, 'Options')
    if not isinstance(options, dict):
        raise click.BadParameter('Options must be a JSON object')
    if private_key:
        options['privateKey'] = private_key

    async def operation(keyring):
        return await keyring.create_account(options)

    acc = run_keyring(ctx, operation)

    click.echo("✅ Account created successfully!")
    click.echo(f"  ID: {acc.id}")
    click.echo(f"  Address: {acc.address}")

    if not private_key:
        click.echo("⚠️  A new key was generated and stored in the keyring state.")


@account.command('update')
@click.argument('account_id')
@click.option('--name', help='Display name')
@click.option('--metadata', 'metadata_json', help='Metadata as JSON object')
@click.pass_context
def update_account(ctx, account_id, name, metadata_json):
    """Update account display fields."""
    patch = {'id': account_id}
    if name is not None:
        patch['name'] = name
    if metadata_json is not None:
        patch['metadata'] = parse_json(metadata_json, 'Metadata')

    async def operation(keyring):
        return await keyring.update_account(patch)

    echo_json(run_keyring(ctx, operation).to_dict())


@account.command('delete')
@click.argument('account_id')
@click.confirmation_option(prompt='Delete this account and its private key?')
@click.pass_context
def delete_account(ctx, account_id):
    """Delete an account and its private key."""
    async def operation(keyring):
        await keyring.delete_account(account_id)

    run_keyring(ctx, operation)
    click.echo(f"🗑️  Account {account_id} deleted")


@account.command('export')
@click.argument('account_id')
@click.confirmation_option(prompt='Print the private key to the terminal?')
@click.pass_context
def export_account(ctx, account_id):
    """Print an account's private key."""
    async def operation(keyring):
        return await keyring.export_account(account_id)

    click.echo(run_keyring(ctx, operation))


@account.command('chains')
@click.argument('account_id')
@click.argument('chains', nargs=-1, required=True)
@click.pass_context
def account_chains(ctx, account_id, chains):
    """Filter CAIP-2 chain ids the account can sign for."""
    async def operation(keyring):
        return await keyring.filter_account_chains(account_id, list(chains))

    for chain in run_keyring(ctx, operation):
        click.echo(chain)


# ============== REQUESTS ==============

@cli.group()
def request():
    """Manage signing requests."""
    pass


@request.command('list')
@click.option('--format', type=click.Choice(['table', 'json']), default='table', help='Output format')
@click.pass_context
def list_requests(ctx, format):
    """List pending requests."""
    async def operation(keyring):
        return await keyring.list_requests()

    requests = run_keyring(ctx, operation)

    if format == 'json':
        echo_json([req.to_dict() for req in requests])
        return

    if not requests:
        click.echo("No pending requests")
        return

    click.echo(
        tabulate(
            [[req.id, req.method, req.account or '-', req.scope or '-'] for req in requests],
            headers=['ID', 'Method', 'Account', 'Scope'],
            tablefmt='grid'
        )
    )


@request.command('get')
@click.argument('request_id')
@click.pass_context
def get_request(ctx, request_id):
    """Show one pending request."""
    async def operation(keyring):
        return await keyring.get_request(request_id)

    echo_json(run_keyring(ctx, operation).to_dict())


@request.command('submit')
@click.argument('method')
@click.argument('params_json')
@click.option('--id', 'request_id', help='Request id (generated if omitted)')
@click.option('--account', 'account_id', help='Account id the request targets')
@click.option('--scope', default='', help='CAIP-2 chain scope')
@click.pass_context
def submit_request(ctx, method, params_json, request_id, account_id, scope):
    """Submit a signing request (PARAMS_JSON is a JSON array)."""
    payload = {
        'id': request_id or str(uuid4()),
        'scope': scope,
        'account': account_id,
        'request': {'method': method, 'params': parse_json(params_json, 'Params')},
    }

    async def operation(keyring):
        return await keyring.submit_request(payload)

    response = run_keyring(ctx, operation)
    if response.pending:
        click.echo(f"⏳ Request {payload['id']} queued for approval")
    else:
        echo_json(response.to_dict())


@request.command('approve')
@click.argument('request_id')
@click.pass_context
def approve_request(ctx, request_id):
    """Sign a pending request."""
    async def operation(keyring):
        return await keyring.approve_request(request_id)

    result = run_keyring(ctx, operation)
    click.echo(f"✅ Request {request_id} approved", err=True)
    echo_json(result)


@request.command('reject')
@click.argument('request_id')
@click.pass_context
def reject_request(ctx, request_id):
    """Reject a pending request."""
    async def operation(keyring):
        await keyring.reject_request(request_id)

    run_keyring(ctx, operation)
    click.echo(f"🚫 Request {request_id} rejected")


# ============== MODE ==============

@cli.group()
def mode():
    """Show or switch the approval mode."""
    pass


@mode.command('show')
@click.pass_context
def show_mode(ctx):
    """Show the approval mode."""
    async def operation(keyring):
        return keyring.is_synchronous_mode()

    click.echo('sync' if run_keyring(ctx, operation) else 'async')


@mode.command('toggle')
@click.pass_context
def toggle_mode(ctx):
    """Switch between synchronous and asynchronous approvals."""
    async def operation(keyring):
        return await keyring.toggle_sync_approvals()

    click.echo(f"Synchronous approvals: {run_keyring(ctx, operation)}")


# ============== STATE ==============

@cli.group()
def state():
    """Read or replace the full keyring state."""
    pass


@state.command('get')
@click.pass_context
def get_state(ctx):
    """Print the full state, including private keys."""
    async def operation(keyring):
        return await keyring.get_state()

    echo_json(run_keyring(ctx, operation))


@state.command('set')
@click.argument('state_file', type=click.File('r'))
@click.pass_context
def set_state(ctx, state_file):
    """Replace the full state from a JSON file."""
    data = parse_json(state_file.read(), 'State')

    async def operation(keyring):
        await keyring.set_state(data)

    run_keyring(ctx, operation)
    click.echo("✅ State replaced")


if __name__ == '__main__':
    cli()
