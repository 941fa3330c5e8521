"""
caseflow 命令列工具

範例：
    caseflow demo
    caseflow list
    caseflow diagram TC-1
    caseflow diagram TC-1 --svg flowchart.svg
    caseflow export --format xlsx --out ./generated_export
    caseflow export --format html --groups
    caseflow import testcases.json
    caseflow delete TC-1
    caseflow clear --yes
    caseflow serve
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from caseflow.config import create_default_config, settings
from caseflow.models.test_case import encode_cases
from caseflow.services.case_store import CaseStore, create_case_store, init_case_store
from caseflow.services.diagram_renderer import DiagramRenderer
from caseflow.services.diagram_service import DiagramService
from caseflow.services.dialog import fixed_answer, native_confirm
from caseflow.services.export_service import ExportError, ExportFormat, ExportService
from caseflow.services.exporters import JSONExporter
from caseflow.services.test_case_service import TestCaseService
from caseflow.services.test_group_service import TestGroupService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="caseflow",
        description="測試用例步驟圖工具",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument('--verbose', action='store_true', help="顯示詳細執行日誌")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="列出所有用例")

    show = sub.add_parser("show", help="以 JSON 顯示單一用例")
    show.add_argument("case_id")

    diagram = sub.add_parser("diagram", help="輸出用例流程圖 (Mermaid)")
    diagram.add_argument("case_id")
    diagram.add_argument("--svg", type=str, help="渲染為 SVG 並寫入指定路徑")
    diagram.add_argument("--png", type=str, help="渲染為 PNG 並寫入指定路徑")

    export = sub.add_parser("export", help="匯出用例")
    export.add_argument("--format", "-f", required=True, choices=[f.value for f in ExportFormat])
    export.add_argument("--out", "-o", type=str, help="輸出目錄（預設取自設定檔）")
    export.add_argument("--groups", action="store_true", help="匯出分組集合")

    imp = sub.add_parser("import", help="由 JSON 匯出檔匯入（取代現有集合）")
    imp.add_argument("path")
    imp.add_argument("--groups", action="store_true", help="匯入分組集合")

    delete = sub.add_parser("delete", help="刪除用例")
    delete.add_argument("case_id")
    delete.add_argument('--yes', '-y', action='store_true', help="自動確認，不詢問")

    clear = sub.add_parser("clear", help="清空用例")
    clear.add_argument("--groups", action="store_true", help="清空分組集合")
    clear.add_argument('--yes', '-y', action='store_true', help="自動確認，不詢問")

    sub.add_parser("demo", help="載入示範用例")
    sub.add_parser("serve", help="啟動 HTTP 服務")

    init_config = sub.add_parser("init-config", help="建立預設設定檔")
    init_config.add_argument("path", nargs="?", default="config.yaml")
    return parser


async def _run(args: argparse.Namespace, store: CaseStore) -> int:
    cases = TestCaseService(store, settings.storage.cases_key)
    groups = TestGroupService(store, settings.storage.groups_key)
    await cases.load()
    await groups.load()
    confirm = fixed_answer(True) if getattr(args, "yes", False) else native_confirm

    if args.command == "list":
        for case in cases.cases:
            print(f"{case.id}\t{case.title}\t({len(case.steps)} 步)")
        if not cases.cases:
            print("暂无用例")
        return 0

    if args.command == "show":
        print(encode_cases([cases.get_case(args.case_id)]))
        return 0

    if args.command == "diagram":
        code = DiagramService().mermaid_for(cases.get_case(args.case_id))
        if not (args.svg or args.png):
            print(code)
            return 0
        renderer = DiagramRenderer(settings.renderer)
        status = 0
        for path, render in ((args.svg, renderer.render_svg), (args.png, renderer.render_png)):
            if not path:
                continue
            content = await asyncio.to_thread(render, code)
            if content is None:
                logger.error("流程圖渲染失敗，未寫入 %s", path)
                status = 1
                continue
            Path(path).write_bytes(content)
            print(f"已寫入 {path}")
        return status

    if args.command == "export":
        exporter = ExportService(DiagramService(), mermaid_cdn_url=settings.export.mermaid_cdn_url)
        try:
            if args.groups:
                artifact = exporter.export_groups(args.format, groups.groups)
            else:
                artifact = exporter.export_cases(args.format, cases.cases)
            path = exporter.save_artifact(artifact, args.out or settings.export.resolve_output_dir())
        except (ExportError, OSError) as e:
            print(f"导出失败: {e}", file=sys.stderr)
            return 1
        print(f"已匯出 {path}")
        return 0

    if args.command == "import":
        try:
            payload = Path(args.path).read_bytes()
        except OSError as e:
            print(f"导入失败: {e}", file=sys.stderr)
            return 1
        if args.groups:
            imported = await groups.import_groups(JSONExporter().import_groups(payload))
        else:
            imported = await cases.import_cases(JSONExporter().import_cases(payload))
        print(f"已匯入 {len(imported)} 筆")
        return 0

    if args.command == "delete":
        deleted = await cases.delete_case(args.case_id, confirm)
        print("已刪除" if deleted else "已取消")
        return 0

    if args.command == "clear":
        if args.groups:
            cleared = await groups.clear_groups(confirm)
        else:
            cleared = await cases.clear_cases(confirm)
        print("已清空" if cleared else "已取消")
        return 0

    if args.command == "demo":
        loaded = await cases.load_demo()
        print(f"已載入示範用例，共 {len(loaded)} 筆")
        return 0

    raise ValueError(f"未知指令: {args.command}")


async def _main_async(args: argparse.Namespace) -> int:
    store = await init_case_store(create_case_store(settings.storage))
    try:
        return await _run(args, store)
    finally:
        await store.close()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.app.log_level, logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
    )
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.command == "serve":
        import uvicorn
        uvicorn.run("caseflow.main:app", host=settings.app.host, port=settings.app.port)
        return 0

    if args.command == "init-config":
        create_default_config(args.path)
        print(f"已建立設定檔 {args.path}")
        return 0

    try:
        return asyncio.run(_main_async(args))
    except ValueError as e:
        logger.error(str(e))
        return 1


if __name__ == '__main__':
    sys.exit(main())
