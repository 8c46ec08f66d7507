"""
Check stored image URLs against the files under MEDIA_ROOT.

    python audit_images.py            report only
    python audit_images.py --repair   rewrite drifted rows, copy legacy files
                                      into the scoped layout, drop blob:/staged: rows

Exits non-zero while issues remain.
"""
import sys

from app.core import config
from app.db.session import SessionLocal
from app.services.image_audit import ImageAuditor, IssueKind
from app.services.path_guard import PathSecurityGuard


def main(argv=None, session_factory=SessionLocal, media_root=None):
    argv = sys.argv[1:] if argv is None else argv
    repair = "--repair" in argv

    db = session_factory()
    try:
        auditor = ImageAuditor(
            db,
            PathSecurityGuard(media_root or config.MEDIA_ROOT),
            config.DEFAULT_IMAGE_FILENAME,
        )
        report = auditor.repair() if repair else auditor.audit()
    except Exception as e:
        db.rollback()
        print(f"[ERROR] Image audit failed: {e}")
        raise
    finally:
        db.close()

    print(f"Checked {report.rows_checked} image rows")
    for kind in IssueKind:
        found = report.by_kind(kind)
        if found:
            print(f"  {kind.value}: {len(found)}")
            for issue in found:
                print(f"    - {issue.describe()}")

    if report.healthy:
        print("[SUCCESS] No image issues found")
    elif repair:
        print(f"[INFO] Repaired {report.repaired} of {len(report.issues)} issues")
    else:
        print(f"[WARNING] {len(report.issues)} issues found, run with --repair to fix what can be fixed")

    return len(report.issues) - report.repaired


if __name__ == "__main__":
    sys.exit(1 if main() > 0 else 0)
