from pathlib import Path
from invoke import task
import shutil
import os
import json
from collections import Counter
from dotenv import load_dotenv


load_dotenv()


APP_NAME = "s3keep"
BUILD_DIR = Path(os.getenv("BUILD_DIR", "dist"))
REPORTS_DIR = BUILD_DIR / "security"


def _echo(ctx, cmd: str) -> None:
    ctx.run(cmd, echo=True)


def _analyze_bandit_report(report_path: Path) -> bool:
    """Print a summary of a Bandit JSON report. Returns True if no HIGH findings."""
    if not report_path.exists():
        print(f"⚠️ Bandit report not generated at {report_path}")
        return True

    with open(report_path, "r", encoding="utf-8") as f:
        results = json.load(f).get("results", [])

    print("\n📊 Bandit Security Analysis:")
    if not results:
        print("   ✅ No security issues found!")
        return True

    severity_counts = Counter(r.get("issue_severity", "UNDEFINED") for r in results)
    print(f"   🔍 Total findings: {len(results)}")
    for severity in ["HIGH", "MEDIUM", "LOW"]:
        count = severity_counts.get(severity, 0)
        if count > 0:
            print(f"   {severity.capitalize()}: {count}")

    test_counts = Counter(r.get("test_name", "unknown") for r in results)
    print("   📋 Top issues:")
    for test_name, count in test_counts.most_common(5):
        print(f"      • {test_name}: {count}")

    return severity_counts.get("HIGH", 0) == 0


@task
def clean(ctx):
    for path in [BUILD_DIR, Path("build"), Path(f"{APP_NAME}.egg-info")]:
        if path.exists():
            shutil.rmtree(path)


@task(help={"k": "Only run tests matching this expression"})
def test(ctx, k: str = ""):
    """Run the pytest suite."""
    selector = f" -k '{k}'" if k else ""
    _echo(ctx, f"python -m pytest -q{selector}")


@task
def security_scan(ctx):
    """Run Bandit over the package and fail on HIGH severity findings."""
    print("\n🛡️  Running security scans...")
    REPORTS_DIR.mkdir(parents=True, exist_ok=True)
    report_path = REPORTS_DIR / "bandit.json"

    # Bandit exits 1 when it finds anything, the report decides pass/fail
    ctx.run(
        f"bandit -r {APP_NAME} -f json -o {report_path}", pty=True, warn=True
    )
    if not _analyze_bandit_report(report_path):
        raise SystemExit("Security scan failed - critical issues found!")
    print("✅ Security scans completed successfully.")


@task
def security_summary(ctx):
    """Display the summary of the last Bandit report."""
    report_path = REPORTS_DIR / "bandit.json"
    if not report_path.exists():
        print("❌ No security reports found. Run 'inv security-scan' first.")
        return
    if not _analyze_bandit_report(report_path):
        raise SystemExit("Critical security issues found!")


@task(pre=[clean])
def build(ctx):
    """Build sdist and wheel into dist/."""
    print(f"🔨 Building {APP_NAME}...")
    _echo(ctx, f"python -m build --outdir {BUILD_DIR}")
    print("📁 Created artifacts:")
    ctx.run(f"ls -la {BUILD_DIR}", hide=False)
