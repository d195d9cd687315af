#!/usr/bin/env python3
"""
Form Walkthrough Demo: Template → Analysis → Preview → Respondent → Submission

Shows the full workflow on the example contact form:
1. Build the template and check its integrity
2. Render a text preview and the conditional logic diagram
3. Walk two respondents through it (VIP and guest)
4. Print the submit payloads
"""

import json

from dfe.backends import DotMode, PreviewMode, generate_dot, render_page
from dfe.errors import NavigationRejected
from dfe.examples import VIP_EMAIL, build_example_contact_form
from dfe.integrity import analyze_template
from dfe.navigator import PageNavigator
from dfe.submission import build_submit_payload


def walk(email, company=None):
    template = build_example_contact_form()
    nav = PageNavigator(template)
    nav.set_answer("field-email", email)
    nav.next()
    print(f"   Visible on '{nav.current_page.name}': {[f.label for f in nav.visible_fields()]}")

    try:
        nav.submit(started_at="2024-05-01T10:00:00+00:00")
    except NavigationRejected as e:
        print(f"   ✗ {e}: {e.errors}")
        nav.set_answer("field-company", company)
        nav.submit(started_at="2024-05-01T10:00:00+00:00")

    print(f"   ✓ Submitted: {json.dumps(build_submit_payload(nav.submission))}")


def main():
    template = build_example_contact_form()

    print("=" * 80)
    print("FORM WALKTHROUGH DEMO: Template → Analysis → Preview → Submission")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Analyze Template
    # =========================================================================
    print("\n1. ANALYZING TEMPLATE...")
    report = analyze_template(template)
    print(f"   ✓ Pages: {report.total_pages}")
    print(f"   ✓ Fields: {report.total_fields}")
    print(f"   ✓ Fields with logic: {report.fields_with_logic}")
    print(f"   ✓ Errors: {report.errors or 'none'}")

    # =========================================================================
    # STEP 2: Preview and Diagram
    # =========================================================================
    print("\n2. DETAILED PREVIEW OF PAGE 2 (VIP answers):")
    print("-" * 80)
    print(render_page(template.pages[1], {"field-email": VIP_EMAIL}, template, PreviewMode.DETAILED))

    print("\n   DOT OUTPUT:")
    for line in generate_dot(template, mode=DotMode.DETAILED).split("\n"):
        print(f"   {line}")

    # =========================================================================
    # STEP 3: Respondents
    # =========================================================================
    print("\n3. RESPONDENT A (VIP):")
    walk(VIP_EMAIL, company="Acme")

    print("\n4. RESPONDENT B (GUEST):")
    walk("guest@example.com")

    print("\n" + "=" * 80)
    print("✓ WALKTHROUGH COMPLETE")
    print("=" * 80)


if __name__ == "__main__":
    main()
