'''
FinSight dashboard API.

Serves the dashboard pages (upload, calculator, latest report, history) as
JSON view models for the frontend, and forwards document analysis to the
external analysis backend configured by ANALYSIS_API_URL.

Run with:
    python main.py
'''
import uvicorn

from finsight.config import settings

if __name__ == "__main__":
    uvicorn.run("finsight.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
