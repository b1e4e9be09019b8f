"""
API 層（FastAPI routers）

只負責 HTTP <-> Manager 的轉換，業務邏輯都在 core/
"""
