#!/usr/bin/env python3
"""
TeachAssist.ai API
Simple startup script for the API server
"""

import uvicorn

if __name__ == "__main__":
    print("Starting TeachAssist.ai API...")
    print("API Documentation: http://localhost:8000/docs")
    print("Health Check: http://localhost:8000/api/health")
    uvicorn.run("teachassist.main:app", host="0.0.0.0", port=8000, reload=True)
