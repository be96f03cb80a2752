# gradeshop/cli.py
import click
from flask.cli import with_appcontext
from flask_jwt_extended import create_access_token
from .extensions import db
from .model import Product
from .utils.money import D
from .services.discount_admin_service import create_discount_from_payload

SAMPLE_PRODUCTS = [
    {"slug": "grading-standard", "sku": "GRD-STD", "name": "Card Grading - Standard (30 days)", "price": "14.99", "stock": 500},
    {"slug": "grading-express", "sku": "GRD-EXP", "name": "Card Grading - Express (10 days)", "price": "24.99", "stock": 200},
    {"slug": "grading-premium", "sku": "GRD-PRM", "name": "Card Grading - Premium (3 days)", "price": "49.99", "stock": 50},
    {"slug": "diamond-sleeve", "sku": "ACC-DSL", "name": "Diamond Sleeve Upgrade", "price": "2.50", "stock": 1000},
    {"slug": "charizard-base-psa9", "sku": "SLB-0001", "name": "Charizard Base Set Holo - Graded 9", "price": "1250.00", "stock": 1},
]

@click.command("seed-catalog")
@with_appcontext
def seed_catalog():
    """Insert the sample grading services and slabs (skips existing SKUs)."""
    added = 0
    for data in SAMPLE_PRODUCTS:
        if Product.query.filter_by(sku=data["sku"]).first():
            continue
        db.session.add(Product(**{**data, "price": D(data["price"])}))
        added += 1
    db.session.commit()
    click.echo(f"{added} products added")

@click.command("create-discount")
@with_appcontext
@click.option("--code", required=True)
@click.option("--description", required=True)
@click.option("--type", "kind", type=click.Choice(["percentage", "fixed", "free_shipping"]), default="percentage")
@click.option("--value", default="0")
@click.option("--minimum-order", default="0")
@click.option("--usage-limit", type=int, default=0)
@click.option("--starts-at", default=None)
@click.option("--ends-at", default=None)
@click.option("--stackable/--not-stackable", default=False)
def create_discount(code, description, kind, value, minimum_order, usage_limit, starts_at, ends_at, stackable):
    body, status = create_discount_from_payload({
        "code": code, "description": description, "type": kind, "value": value,
        "minimum_order": minimum_order, "usage_limit": usage_limit,
        "starts_at": starts_at, "ends_at": ends_at, "stackable": stackable,
    })
    if status != 201:
        raise click.ClickException(body["message"])
    click.echo(f"Discount created: {body['data']['code']}")

@click.command("issue-admin-token")
@with_appcontext
@click.option("--name", required=True, help="who the token is for, recorded as the JWT subject")
def issue_admin_token(name):
    token = create_access_token(identity=name.strip(), additional_claims={"role": "admin"})
    click.echo(token)

def register_cli(app):
    app.cli.add_command(seed_catalog)
    app.cli.add_command(create_discount)
    app.cli.add_command(issue_admin_token)
