"""Dependencies resolved from objects built in the application lifespan."""

from fastapi import Request

from db.neo4j import GraphClient
from db.travel_graph import TravelGraphRepository
from services.extractor import InsightExtractor
from services.llm import LLMClient
from services.recommender import RecommendationGenerator


def get_graph_client(request: Request) -> GraphClient:
    return request.app.state.graph_client


def get_repository(request: Request) -> TravelGraphRepository:
    return request.app.state.repository


def get_llm(request: Request) -> LLMClient:
    return request.app.state.llm


def get_extractor(request: Request) -> InsightExtractor:
    return request.app.state.extractor


def get_recommender(request: Request) -> RecommendationGenerator:
    return request.app.state.recommender
