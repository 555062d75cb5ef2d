"""
MATLYNX CLI

Command-line interface over the marketplace store. The CLI behaves as one
local device: it keeps a single session pointer under the default
session key.

Commands:
- serve: Run the web app
- register / login / logout / whoami: Session management
- profile show / profile save: Profile setup
- materials list / add / update / toggle / delete: Listings
- route: Show what the route gate decides for a path
"""

from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from matlynx import gate
from matlynx.auth import AuthSessionManager
from matlynx.contracts.records import Material, User
from matlynx.contracts.types import MaterialUnit, UserRole
from matlynx.exceptions import AuthError, ValidationError
from matlynx.logging import setup_logging
from matlynx.materials import MaterialRepository, dealer_contact_links, format_unit, search_materials
from matlynx.profiles import ProfileService
from matlynx.store import Store, open_store
from matlynx.validation import parse_login, parse_material, parse_profile, parse_registration

app = typer.Typer(
    name="matlynx",
    help="MATLYNX construction materials marketplace",
    no_args_is_help=True,
)
profile_app = typer.Typer(help="Profile setup", no_args_is_help=True)
materials_app = typer.Typer(help="Material listings", no_args_is_help=True)
app.add_typer(profile_app, name="profile")
app.add_typer(materials_app, name="materials")

console = Console()

_state: dict[str, Optional[str]] = {"store_url": None}


@app.callback()
def main(
    store_url: Optional[str] = typer.Option(
        None, "--store", envvar="STORE_URL", help="Store URL (memory://, file://<dir>, redis://...)"
    ),
    log_level: str = typer.Option("WARNING", help="Log level"),
):
    """MATLYNX marketplace administration."""
    setup_logging(level=log_level)
    _state["store_url"] = store_url


def get_store() -> Store:
    try:
        return open_store(_state["store_url"])
    except ValueError as e:
        rprint(f"[red]{e}[/red]")
        raise typer.Exit(1)


def fail(message: str) -> None:
    rprint(f"[red]{message}[/red]")
    raise typer.Exit(1)


def show_validation_errors(error: ValidationError) -> None:
    for field, reason in error.as_dict().items():
        rprint(f"[red]{field}: {reason}[/red]")
    raise typer.Exit(1)


def require_user(auth: AuthSessionManager) -> User:
    user = auth.current_session()
    if user is None:
        fail("Not logged in. Run 'matlynx login' first.")
    return user


def require_gate(auth: AuthSessionManager, profiles: ProfileService, page: str) -> User:
    """Session user, if the route gate lets them onto page."""
    decision = gate.check(auth, profiles, page)
    if decision.path == gate.AUTH:
        fail("Not logged in. Run 'matlynx login' first.")
    if decision.path == gate.PROFILE_SETUP:
        fail("Complete your profile first ('matlynx profile save').")
    if not decision.is_render:
        fail(f"Not allowed here: {page} -> {decision.path}")
    return auth.current_session()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind host"),
    port: Optional[int] = typer.Option(None, help="Bind port"),
):
    """Run the web app."""
    import uvicorn

    from matlynx.settings import get_settings
    from matlynx.web.app import create_app

    settings = get_settings()
    uvicorn.run(create_app(get_store()), host=host or settings.HOST, port=port or settings.PORT)


# =============================================================================
# Session
# =============================================================================

@app.command()
def register(
    name: str = typer.Option(..., help="Full name"),
    email: str = typer.Option(..., help="Email (login)"),
    phone: str = typer.Option(..., help="Phone number"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
    role: UserRole = typer.Option(UserRole.DEALER, help="dealer or contractor"),
    whatsapp: str = typer.Option("", help="WhatsApp number (defaults to phone)"),
):
    """Register a new user and log in."""
    auth = AuthSessionManager(get_store())
    try:
        user = parse_registration({
            "name": name,
            "email": email,
            "phone": phone,
            "password": password,
            "role": role.value,
            "whatsapp": whatsapp,
        })
        auth.register(user)
    except ValidationError as e:
        show_validation_errors(e)
    except AuthError as e:
        fail(str(e))
    rprint(f"[green]Registered and logged in as {user.email} ({user.role})[/green]")


@app.command()
def login(
    email: str = typer.Argument(..., help="Email"),
    password: str = typer.Option(..., prompt=True, hide_input=True),
):
    """Log in."""
    auth = AuthSessionManager(get_store())
    try:
        user = auth.login(*parse_login({"email": email, "password": password}))
    except ValidationError as e:
        show_validation_errors(e)
    except AuthError as e:
        fail(str(e))
    rprint(f"[green]Logged in as {user.email} ({user.role})[/green]")


@app.command()
def logout():
    """Log out."""
    AuthSessionManager(get_store()).logout()
    rprint("[green]Logged out[/green]")


@app.command()
def whoami():
    """Show the session user and profile status."""
    store = get_store()
    auth = AuthSessionManager(store)
    user = require_user(auth)
    complete = ProfileService(store).has_complete_profile(user.email)
    rprint(f"[bold]{user.name}[/bold] <{user.email}>")
    rprint(f"  Role: {user.role}")
    rprint(f"  Phone: {user.phone}")
    rprint(f"  Profile complete: {'[green]yes[/green]' if complete else '[yellow]no[/yellow]'}")


@app.command()
def route(
    path: str = typer.Argument(..., help="Page path, e.g. /dealer"),
    follow: bool = typer.Option(False, "--follow", help="Follow redirects to the final page"),
):
    """Show what the route gate decides for PATH."""
    store = get_store()
    auth = AuthSessionManager(store)
    profiles = ProfileService(store)
    user = auth.current_session()
    complete = profiles.has_complete_profile(user.email) if user else False
    decision = gate.resolve(user, complete, path) if follow else gate.decide(user, complete, path)
    rprint(f"{decision.action} {decision.path}")


# =============================================================================
# Profile
# =============================================================================

@profile_app.command("show")
def profile_show():
    """Show the session user's profile."""
    store = get_store()
    user = require_user(AuthSessionManager(store))
    profile = ProfileService(store).get_profile(user.email)
    if profile is None:
        rprint("[yellow]No profile yet. Run 'matlynx profile save'.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Profile: {profile.user_id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Full name", profile.full_name)
    table.add_row("Role", str(profile.role))
    if profile.role == UserRole.DEALER:
        table.add_row("Shop", profile.shop_name or "-")
    else:
        table.add_row("Company", profile.company_name or "-")
    table.add_row("Phone", profile.phone)
    table.add_row("WhatsApp", profile.whatsapp or "-")
    address = profile.address
    table.add_row(
        "Address",
        ", ".join(p for p in (address.street, address.area, address.city, address.state, address.pincode) if p),
    )
    table.add_row("Complete", "yes" if profile.is_complete else "no")
    table.add_row("Updated", profile.updated_at.isoformat())
    console.print(table)


@profile_app.command("save")
def profile_save(
    full_name: Optional[str] = typer.Option(None, help="Full name"),
    shop_name: Optional[str] = typer.Option(None, help="Shop name (dealers)"),
    company_name: Optional[str] = typer.Option(None, help="Company name (contractors)"),
    phone: Optional[str] = typer.Option(None, help="Phone"),
    whatsapp: Optional[str] = typer.Option(None, help="WhatsApp (empty = same as phone)"),
    street: Optional[str] = typer.Option(None),
    area: Optional[str] = typer.Option(None),
    city: Optional[str] = typer.Option(None),
    state: Optional[str] = typer.Option(None),
    pincode: Optional[str] = typer.Option(None),
):
    """Create or update the profile. Unset options keep their current value."""
    store = get_store()
    user = require_user(AuthSessionManager(store))
    profiles = ProfileService(store)

    form = profiles.draft_for(user)
    given = {
        "full_name": full_name,
        "shop_name": shop_name,
        "company_name": company_name,
        "phone": phone,
        "whatsapp": whatsapp,
        "street": street,
        "area": area,
        "city": city,
        "state": state,
        "pincode": pincode,
    }
    form.update({k: v for k, v in given.items() if v is not None})

    try:
        profile = profiles.save_profile(user, parse_profile(form, user.role))
    except ValidationError as e:
        show_validation_errors(e)
    status = "[green]complete[/green]" if profile.is_complete else "[yellow]incomplete[/yellow]"
    rprint(f"Profile saved ({status})")


# =============================================================================
# Materials
# =============================================================================

def _materials_table(title: str, materials: list[Material], contractor_view: bool) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Price", justify="right")
    table.add_column("Quantity")
    if contractor_view:
        table.add_column("Dealer")
        table.add_column("WhatsApp")
    else:
        table.add_column("Status")
    for m in materials:
        row = [m.id, m.name, f"₹{m.price:,.2f}", f"{m.quantity:g} {format_unit(m.unit)}"]
        if contractor_view:
            row += [m.dealer_name, dealer_contact_links(m)["whatsapp"]]
        else:
            row.append("[green]Active[/green]" if m.is_active else "[yellow]Paused[/yellow]")
        table.add_row(*row)
    return table


@materials_app.command("list")
def materials_list(
    search: str = typer.Option("", "--search", "-q", help="Filter by name, description or dealer"),
):
    """List your materials (dealer) or active materials (contractor)."""
    store = get_store()
    auth = AuthSessionManager(store)
    profiles = ProfileService(store)
    repo = MaterialRepository(store)

    user = require_user(auth)
    if user.role == UserRole.DEALER:
        require_gate(auth, profiles, gate.DEALER)
        materials = search_materials(repo.list_by_dealer(user.email), search)
        console.print(_materials_table("Your materials", materials, contractor_view=False))
    else:
        require_gate(auth, profiles, gate.CONTRACTOR)
        active = repo.list_active()
        materials = search_materials(active, search)
        console.print(_materials_table("Available materials", materials, contractor_view=True))
        rprint(f"Showing {len(materials)} of {len(active)} materials")


@materials_app.command("add")
def materials_add(
    name: str = typer.Option(..., help="Material name"),
    price: str = typer.Option(..., help="Price per unit"),
    quantity: str = typer.Option(..., help="Available quantity"),
    unit: MaterialUnit = typer.Option(MaterialUnit.BAGS, help="Unit"),
    description: str = typer.Option("", help="Description"),
    valid_until: str = typer.Option("", help="Price valid until (YYYY-MM-DD)"),
):
    """Add a material listing."""
    store = get_store()
    auth = AuthSessionManager(store)
    repo = MaterialRepository(store)
    user = require_gate(auth, ProfileService(store), gate.DEALER)

    try:
        data = parse_material({
            "name": name,
            "price": price,
            "quantity": quantity,
            "unit": unit.value,
            "description": description,
            "price_valid_until": valid_until,
        })
    except ValidationError as e:
        show_validation_errors(e)
    material = repo.create(repo.new_listing(user, data))
    rprint(f"[green]Added {material.name} ({material.id})[/green]")


def _owned(repo: MaterialRepository, material_id: str, user: User) -> Material:
    material = repo.get(material_id)
    if material is None or material.dealer_email != user.email:
        fail(f"Material not found: {material_id}")
    return material


@materials_app.command("update")
def materials_update(
    material_id: str = typer.Argument(..., help="Material ID"),
    name: Optional[str] = typer.Option(None),
    price: Optional[str] = typer.Option(None),
    quantity: Optional[str] = typer.Option(None),
    unit: Optional[MaterialUnit] = typer.Option(None),
    description: Optional[str] = typer.Option(None),
    valid_until: Optional[str] = typer.Option(None, help="Price valid until (YYYY-MM-DD)"),
):
    """Update fields of one of your materials."""
    store = get_store()
    auth = AuthSessionManager(store)
    repo = MaterialRepository(store)
    user = require_gate(auth, ProfileService(store), gate.DEALER)
    _owned(repo, material_id, user)

    try:
        data = parse_material(
            {
                "name": name,
                "price": price,
                "quantity": quantity,
                "unit": unit.value if unit else None,
                "description": description,
                "price_valid_until": valid_until,
            },
            partial=True,
        )
    except ValidationError as e:
        show_validation_errors(e)
    material = repo.update(material_id, data)
    rprint(f"[green]Updated {material.name}[/green]")


@materials_app.command("toggle")
def materials_toggle(material_id: str = typer.Argument(..., help="Material ID")):
    """Pause or activate one of your materials."""
    store = get_store()
    auth = AuthSessionManager(store)
    repo = MaterialRepository(store)
    user = require_gate(auth, ProfileService(store), gate.DEALER)
    _owned(repo, material_id, user)

    material = repo.toggle_active(material_id)
    rprint(f"{material.name}: {'[green]Active[/green]' if material.is_active else '[yellow]Paused[/yellow]'}")


@materials_app.command("delete")
def materials_delete(
    material_id: str = typer.Argument(..., help="Material ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete one of your materials."""
    store = get_store()
    auth = AuthSessionManager(store)
    repo = MaterialRepository(store)
    user = require_gate(auth, ProfileService(store), gate.DEALER)
    material = _owned(repo, material_id, user)

    if not yes and not typer.confirm(f"Delete {material.name}?"):
        raise typer.Exit(0)
    repo.delete(material_id)
    rprint(f"[green]Deleted {material.name}[/green]")


if __name__ == "__main__":
    app()
