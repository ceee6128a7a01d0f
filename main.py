import click
import uvicorn
from catalog.core.logging import get_logger
from catalog.core.config import settings
from catalog.core.exceptions import APIError
from catalog.db.models.user import UserRole

logger = get_logger(__name__)


@click.group()
def cli():
    """Storefront catalog CLI"""
    pass


@cli.command()
@click.option("--host", default="0.0.0.0")
@click.option("--port", default=8000)
@click.option("--workers", default=1)
@click.option("--production", is_flag=True, help="Run in production mode")
def serve(host, port, workers, production):
    """Start the API server"""
    reload = not production  # Auto-reload unless production mode

    uvicorn.run(
        "catalog.api.web_app:app",
        host=host,
        port=port,
        reload=reload,
        workers=workers if production else 1,
        log_level="info" if production else "debug",
    )


@cli.command()
@click.argument("email")
@click.option("--name", default=None, help="Display name")
@click.option(
    "--role",
    type=click.Choice([role.value for role in UserRole]),
    default=UserRole.USER.value,
    help="Role of the new user",
)
def create_user(email, name, role):
    """Create a user account"""
    from catalog.core.dependencies import session_scope
    from catalog.schemas.user import UserCreate
    from catalog.services.auth_service import AuthService

    try:
        with session_scope() as db:
            user = AuthService(db).create_user(
                UserCreate(email=email, name=name, role=UserRole(role))
            )
        click.echo(f"Created user {user.email} ({user.role.value}): {user.id}")
    except APIError as e:
        click.echo(f"Error: {e.message}")
        raise SystemExit(1)


@cli.command()
@click.argument("email")
@click.option(
    "--expires-in-days",
    type=int,
    default=None,
    help=f"Token lifetime in days (default {settings.AUTH_TOKEN_TTL_DAYS}, 0 for no expiry)",
)
def issue_token(email, expires_in_days):
    """Issue a bearer token for an existing user"""
    from catalog.core.dependencies import session_scope
    from catalog.services.auth_service import AuthService

    with session_scope() as db:
        service = AuthService(db)
        user = service.get_user_by_email(email)
        if not user:
            click.echo(f"Error: User '{email}' not found")
            raise SystemExit(1)
        issued = service.issue_token(user.id, expires_in_days=expires_in_days)

    click.echo(f"Token for {user.email} ({user.role.value}):")
    click.echo(issued.token)
    if issued.expires_at:
        click.echo(f"Expires: {issued.expires_at.isoformat()}")
    click.echo("Store this token now; it cannot be shown again.")


def _echo_tree(nodes, indent=0):
    for node in nodes:
        flags = []
        if not node.is_active:
            flags.append("inactive")
        if node.is_featured:
            flags.append("featured")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        click.echo(
            f"{'  ' * indent}- {node.name} ({node.slug}) "
            f"products={node.product_count} children={node.child_count}{suffix}"
        )
        _echo_tree(node.children, indent + 1)


@cli.command()
@click.option("--parent-id", type=click.UUID, default=None, help="Print only the subtree below this category")
@click.option("--include-inactive", is_flag=True, help="Include inactive categories")
def show_tree(parent_id, include_inactive):
    """Print the category tree"""
    from catalog.core.dependencies import session_scope
    from catalog.services.category_service import CategoryService

    try:
        with session_scope() as db:
            tree = CategoryService(db).get_tree(parent_id=parent_id, include_inactive=include_inactive)
    except APIError as e:
        click.echo(f"Error: {e.message}")
        raise SystemExit(1)

    if not tree:
        click.echo("No categories found")
        return
    _echo_tree(tree)


if __name__ == "__main__":
    cli()
