#!/usr/bin/env python3
"""
Seed demo leads for working on the dashboard locally.

Creates leads covering the states the operator sees:
  1. Freshly discovered (status 'new', search snippet only)
  2. Manually entered (status 'new', nothing else)
  3. Analyzed, with draft + analysis
  4. Analyzed, with an operator-edited draft

Usage:
    python scripts/seed_test_data.py          # seed all scenarios
    python scripts/seed_test_data.py --clear  # wipe seeded data first

Requires: DATABASE_URL set (or defaults to sqlite:///local.db).
"""
import sys
import os
import argparse

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from leadgen.config import STATUS_NEW, STATUS_ANALYZED
from leadgen.database import get_session, init_db
from leadgen.models.lead import Lead
from leadgen.services.store import LeadStore


# Seeded URLs live under this domain so --clear can find them
SEED_DOMAIN = 'seed.example'

LEADS = [
    {
        'url': f'https://logistica.{SEED_DOMAIN}',
        'company_name': 'Logistica Segura SAS',
        'status': STATUS_NEW,
        'scraped_data': {'description': 'Soluciones de logistica integral en Bogota.'},
    },
    {
        'url': f'https://manual.{SEED_DOMAIN}',
        'company_name': None,
        'status': STATUS_NEW,
    },
    {
        'url': f'https://constructora.{SEED_DOMAIN}',
        'company_name': 'Constructora Andina',
        'status': STATUS_ANALYZED,
        'scraped_data': {
            'title': 'Constructora Andina | Proyectos de vivienda',
            'description': 'Vivienda VIS y no VIS en Cundinamarca.',
            'tech_stack': ['WordPress', 'Elementor'],
            'social_links': ['https://www.linkedin.com/company/constructora-andina'],
        },
        'ai_analysis': {
            'company_name': 'Constructora Andina',
            'tech_stack': ['WordPress', 'Elementor'],
            'opportunities': ['Power BI project dashboards', 'WhatsApp chatbot for sales leads'],
            'email_draft': 'Subject: Tableros de avance de obra\n\nBody: Hola equipo de Constructora Andina...',
        },
        'email_draft': 'Subject: Tableros de avance de obra\n\nBody: Hola equipo de Constructora Andina...',
    },
    {
        'url': f'https://agencia.{SEED_DOMAIN}',
        'company_name': 'Agencia Pixel',
        'status': STATUS_ANALYZED,
        'scraped_data': {'title': 'Agencia Pixel', 'tech_stack': ['Webflow']},
        'ai_analysis': {
            'company_name': 'Agencia Pixel',
            'opportunities': ['n8n automation of client reporting'],
            'research_notes': 'Won a regional digital award last month.',
        },
        'email_draft': 'Subject: Reportes automaticos\n\nBody: (edited by operator) Hola Agencia Pixel...',
    },
]


def clear_seed_data():
    session = get_session()
    try:
        deleted = session.query(Lead).filter(Lead.url.like(f'%.{SEED_DOMAIN}')).delete(synchronize_session=False)
        session.commit()
        print(f"Cleared {deleted} seeded leads")
    finally:
        session.close()


def seed():
    store = LeadStore()
    for entry in LEADS:
        fields = {k: v for k, v in entry.items() if k != 'url'}
        lead = store.upsert_by_url(entry['url'], fields)
        print(f"  {lead.status:<9} {lead.url}")
    print(f"Seeded {len(LEADS)} leads")


def main():
    parser = argparse.ArgumentParser(description='Seed demo leads')
    parser.add_argument('--clear', action='store_true', help='Remove seeded leads first')
    args = parser.parse_args()

    init_db()
    if args.clear:
        clear_seed_data()
    seed()


if __name__ == '__main__':
    main()
