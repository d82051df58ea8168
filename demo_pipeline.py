#!/usr/bin/env python3
"""
Complete Pipeline Demo: definitions → tree, export → records → frequency tables

Shows the full workflow on the bundled example survey:
1. Nest flat definition rows and build the question tree
2. Normalize the raw response export
3. Tabulate answers, skipping the id column
4. Resolve labels and multiple-choice selections through the tree
"""

from limetab.access import AccessFilter
from limetab.definitions import nest_definitions
from limetab.examples import build_example_export, build_example_rows
from limetab.normalizer import normalize_export
from limetab.serialization import question_set_to_yaml
from limetab.tabulator import tabulate
from limetab.tree import build_question_set


def main():
    print("=" * 80)
    print("PIPELINE DEMO: definitions → tree, export → frequency tables")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Build the tree
    # =========================================================================
    print("\n1. BUILDING QUESTION TREE...")
    questions, answers = build_example_rows()
    qs = build_question_set(nest_definitions(questions, answers))
    print(f"   ✓ Top-level questions: {len(qs)}")
    for q in qs:
        print(f"      {q.title:<4} [{q.type}] {q.text}")
        for sub in q.subquestions:
            print(f"         - {sub.title}: {sub.text}")
        for a in q.answers:
            print(f"         * {a.code}: {a.text}")

    # =========================================================================
    # STEP 2: Normalize the export
    # =========================================================================
    print("\n2. NORMALIZING EXPORT...")
    records = normalize_export(build_example_export())
    print(f"   ✓ Records: {len(records)}")

    # =========================================================================
    # STEP 3: Tabulate
    # =========================================================================
    print("\n3. TABULATING...")
    result = tabulate(records, access=AccessFilter(blocked=["id"]), sort=True)
    for column, tally in result.items():
        label = qs.label(column) or column
        print(f"   {column} ({label}) n={tally.count}")
        for value, vt in tally.vals.items():
            shown = value.replace("\n", " / ")
            print(f"      {shown!s:<20} {vt.count:>3} {vt.percent:>7.2f}%")

    # =========================================================================
    # STEP 4: Multiple choice
    # =========================================================================
    print("\n4. MULTIPLE CHOICE (Q10)...")
    for record in records:
        picked = qs["Q10"].multiple_choice(record, text=True)
        print(f"   Respondent {record['id']}: {', '.join(picked) or '(none)'}")

    print("\n" + "=" * 80)
    print("TREE AS YAML")
    print("=" * 80)
    print(question_set_to_yaml(qs))


if __name__ == "__main__":
    main()
