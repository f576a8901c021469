"""
Database URL configuration with RDS credential lookup
"""
import os
import json
import logging
import re
import ssl
import urllib.parse
from typing import Optional, Dict, Any

import boto3

from .config import settings

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./journal_insights.db"


def get_rds_credentials() -> Optional[Dict[str, Any]]:
    """Get RDS credentials from AWS Secrets Manager"""
    secret_arn = os.environ.get("DB_SECRET_ARN")
    if not secret_arn:
        return None

    try:
        secrets_client = boto3.client('secretsmanager')
        response = secrets_client.get_secret_value(SecretId=secret_arn)
        return json.loads(response['SecretString'])
    except Exception as e:
        logger.error("Failed to get RDS credentials: %s", e)
        return None


def create_ssl_context():
    """Create SSL context for RDS connections"""
    ssl_context = ssl.create_default_context()
    ssl_context.check_hostname = False
    ssl_context.verify_mode = ssl.CERT_NONE
    return ssl_context


def get_database_url() -> str:
    """Get database URL, splicing in RDS credentials when running on Lambda"""
    database_url = settings.DATABASE_URL or os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)

    if not os.environ.get("AWS_LAMBDA_FUNCTION_NAME") or "sqlite" in database_url:
        return database_url

    credentials = get_rds_credentials()
    if not credentials:
        logger.warning("No RDS credentials found, using DATABASE_URL as-is")
        return database_url

    match = re.search(r'postgresql\+asyncpg://[^@]*@([^:/]+):?(\d*)(?:/(\w+))?', database_url)
    if not match:
        logger.error("Could not parse DATABASE_URL host")
        return database_url

    host = match.group(1)
    port = match.group(2) or "5432"
    database = match.group(3) or "journal_insights"

    # URL encode to handle special characters in generated passwords
    username = urllib.parse.quote(credentials.get('username', 'journal_insights'), safe='')
    password = urllib.parse.quote(credentials.get('password', ''), safe='')

    logger.info("Database config: host=%s, port=%s, database=%s", host, port, database)
    return f"postgresql+asyncpg://{username}:{password}@{host}:{port}/{database}"
