"""
Flask CLI commands.

Commands:
- flask init-db: Create the database tables
- flask quote-preview: Calculate a quote from the command line
"""

from datetime import date

import click
from flask import current_app

from dealquote.database import create_all
from dealquote.exceptions import QuoteServiceError
from dealquote.services.price_quote_calculation import PricingSettings, calculate_price_quote
from dealquote.services.quote_input import PriceQuoteInput
from dealquote.utils.formatters import format_currency, format_date, format_percentage

_STATUS_COLORS = {'ok': 'green', 'warning': 'yellow', 'blocked': 'red'}


def _parse_cost(value):
    """DESCRIPTION=AMOUNT"""
    description, sep, amount = value.rpartition('=')
    if not sep:
        raise click.BadParameter(f"'{value}' must look like DESCRIPTION=AMOUNT")
    return {'description': description, 'amount': amount}


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables for the registered models."""
        create_all()
        click.echo(click.style('Database tables created.', fg='green'))

    @app.cli.command('quote-preview')
    @click.option('--mp', 'base_minimum_price_mp', required=True, help='Base minimum price (MP)')
    @click.option('--markup', 'target_markup_percentage', default='0', help='Target markup percentage')
    @click.option('--fop', 'final_offer_price_fop', required=True, help='Final offer price (FOP)')
    @click.option('--discount', 'overall_discount_percentage', default='0', help='Overall discount percentage')
    @click.option('--upfront', 'upfront_payment_percentage', default='0', help='Upfront payment percentage')
    @click.option('--upfront-days', 'upfront_payment_due_days', default=0, type=int)
    @click.option('--installments', 'subsequent_installments_count', default=0, type=int)
    @click.option('--interval-days', 'subsequent_installments_interval_days', default=0, type=int)
    @click.option('--cost', 'costs', multiple=True, help='Additional cost as DESCRIPTION=AMOUNT (repeatable)')
    @click.option('--agreement-date', type=click.DateTime(formats=['%Y-%m-%d']), default=None,
                  help='Agreement date (default: today)')
    def quote_preview(costs, agreement_date, **fields):
        """Calculate pricing, escalation and invoice schedule without saving."""
        symbol = current_app.config.get('CURRENCY_SYMBOL', '$')
        try:
            quote_input = PriceQuoteInput(
                additional_costs=[_parse_cost(c) for c in costs], **fields
            )
            settings = PricingSettings.from_config(current_app.config)
            when = agreement_date.date() if agreement_date else date.today()
            result = calculate_price_quote(quote_input, when, settings)
        except QuoteServiceError as e:
            raise click.ClickException(e.message)

        click.echo(f"Total direct cost:   {format_currency(result.total_direct_cost, symbol)}")
        click.echo(f"Target price:        {format_currency(result.target_price, symbol)}")
        click.echo(f"Full target price:   {format_currency(result.full_target_price, symbol)}")
        click.echo(f"Offer price:         {format_currency(result.discounted_offer_price, symbol)}")
        click.echo(f"Effective markup:    {format_percentage(result.effective_markup_percent)}")
        status = result.escalation_status.value
        click.echo("Escalation:          " + click.style(status.upper(), fg=_STATUS_COLORS[status], bold=True))
        if result.escalation_details.get('reason'):
            click.echo(f"  {result.escalation_details['reason']}")

        if result.invoice_schedule:
            click.echo('\nInvoice schedule:')
            for entry in result.invoice_schedule:
                click.echo(
                    f"  {format_date(entry.due_date)}  {entry.entry_type.value:<12} "
                    f"{format_currency(entry.amount_due, symbol):>14}  {entry.description or ''}"
                )
