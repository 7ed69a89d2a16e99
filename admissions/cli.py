# cli.py
"""
Flask CLI commands for the admissions backend.
"""

import getpass

import click
from flask.cli import with_appcontext

from admissions.extensions import db
from admissions.utils.errors import AppError


def _services():
    from admissions.controllers import application_service, auth_service, cohort_service
    return application_service(), auth_service(), cohort_service()


def _fail(e: AppError):
    raise click.ClickException(f"{e.code}: {e.message}")


@click.command("init-db")
@with_appcontext
def init_db():
    """Create all database tables."""
    db.create_all()
    click.echo("Database tables created.")


@click.command("create-admin")
@click.argument("email")
@click.option("--password", help="Password for the new admin (prompted when omitted)")
@click.option("--super-admin", is_flag=True, help="Grant super admin rights")
@with_appcontext
def create_admin(email, password, super_admin):
    """
    Create an admin account.

    Example usage:
        flask create-admin ops@example.com --super-admin
    """
    if not password:
        password = getpass.getpass("Password: ")

    _, auth, _ = _services()
    try:
        user = auth.create_admin(email, password, is_super_admin=super_admin)
    except AppError as e:
        _fail(e)

    click.echo(f"Admin {user['email']} created with id {user['id']}.")


@click.command("create-cohort")
@click.argument("name")
@click.option("--capacity", type=click.IntRange(min=1), default=None, help="Seat limit (unlimited when omitted)")
@click.option("--status", default="open", show_default=True)
@with_appcontext
def create_cohort(name, capacity, status):
    """Create a cohort that accepts applications."""
    _, _, cohorts = _services()
    try:
        cohort = cohorts.create_cohort(name, capacity=capacity, status=status)
    except AppError as e:
        _fail(e)

    limit = cohort['capacity'] if cohort['capacity'] is not None else 'unlimited'
    click.echo(f"Cohort {cohort['id']} '{cohort['name']}' created (capacity: {limit}).")


@click.command("approve-application")
@click.argument("application_id", type=int)
@click.option("--reviewer-id", type=int, required=True, help="Admin user id recorded as reviewer")
@click.option("--message", default=None, help="Optional review message")
@with_appcontext
def approve_application(application_id, reviewer_id, message):
    """
    Approve a pending application and enroll the applicant.

    A newly generated password is printed once so the operator can deliver it.
    """
    applications, _, _ = _services()
    try:
        result = applications.approve(application_id, reviewer_id, message=message)
    except AppError as e:
        _fail(e)

    click.echo(f"Application {result.application_id} approved.")
    click.echo(f"  Student user: {result.student_user_id}")
    click.echo(f"  Enrollment:   {result.enrollment_id}")
    if result.generated_password:
        click.echo(f"  Temporary password: {result.generated_password}")
    else:
        click.echo("  Existing account reused; no password generated.")


@click.command("reject-application")
@click.argument("application_id", type=int)
@click.option("--reviewer-id", type=int, required=True, help="Admin user id recorded as reviewer")
@click.option("--reason", default=None, help="Reason stored in the activity log")
@with_appcontext
def reject_application(application_id, reviewer_id, reason):
    """Reject a pending application."""
    applications, _, _ = _services()
    try:
        result = applications.reject(application_id, reviewer_id, reason=reason)
    except AppError as e:
        _fail(e)

    click.echo(f"Application {result['id']} {result['status']}.")


def register_cli_commands(app):
    """Register all custom CLI commands with the Flask app."""
    app.cli.add_command(init_db)
    app.cli.add_command(create_admin)
    app.cli.add_command(create_cohort)
    app.cli.add_command(approve_application)
    app.cli.add_command(reject_application)
