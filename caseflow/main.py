from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
import logging
import os

from caseflow import __version__
from caseflow.api import api_router
from caseflow.config import settings
from caseflow.services.case_store import create_case_store, init_case_store
from caseflow.services.diagram_renderer import DiagramRenderer
from caseflow.services.diagram_service import DiagramService
from caseflow.services.draft_service import DraftService
from caseflow.services.export_service import ExportService
from caseflow.services.exporters import HTMLExporter
from caseflow.services.test_case_service import TestCaseService
from caseflow.services.test_group_service import TestGroupService

app = FastAPI(
    title="Caseflow",
    description="測試用例步驟圖編輯、流程圖與多格式匯出",
    version=__version__,
)

# 配置日誌
logging.basicConfig(level=getattr(logging, settings.app.log_level, logging.INFO))

app.include_router(api_router, prefix="/api")

# 測試或嵌入時可預先指定 app.state.case_store
app.state.case_store = None


@app.get("/", response_class=HTMLResponse)
async def index(request: Request):
    """預覽頁面，與靜態 HTML 匯出使用同一模板"""
    state = request.app.state
    exporter = HTMLExporter(state.diagram_service, mermaid_cdn_url=settings.export.mermaid_cdn_url)
    return HTMLResponse(exporter.render_cases(state.test_case_service.cases))


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.on_event("startup")
async def startup_event():
    """應用程式啟動事件"""
    store = await init_case_store(app.state.case_store or create_case_store(settings.storage))
    app.state.case_store = store

    diagram_service = DiagramService()
    test_case_service = TestCaseService(store, settings.storage.cases_key)
    test_group_service = TestGroupService(store, settings.storage.groups_key)

    app.state.diagram_service = diagram_service
    app.state.test_case_service = test_case_service
    app.state.test_group_service = test_group_service
    app.state.draft_service = DraftService(test_case_service, test_group_service)
    app.state.export_service = ExportService(diagram_service, mermaid_cdn_url=settings.export.mermaid_cdn_url)
    app.state.diagram_renderer = DiagramRenderer(settings.renderer)

    await test_case_service.load()
    await test_group_service.load()

    os.makedirs(settings.export.resolve_output_dir(), exist_ok=True)
    logging.info("匯出目錄已就緒: %s", settings.export.resolve_output_dir())


@app.on_event("shutdown")
async def shutdown_event():
    """應用程式關閉事件"""
    try:
        if app.state.case_store is not None:
            await app.state.case_store.close()
    except Exception as e:
        logging.error(f"關閉用例儲存失敗: {e}")
    app.state.case_store = None


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.app.host, port=settings.app.port)
