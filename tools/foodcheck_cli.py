#!/usr/bin/env python3
"""
CLI tool for exercising the verification pipeline from the command line.
Usage: python tools/foodcheck_cli.py audit photo.jpg
"""

import argparse
import base64
import json
import sys
from pathlib import Path

import requests

sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.audit import DishAuditor
from app.core.kitchen import KitchenAssistant
from app.core.model_interface import GroqChatInterface, ModelManager
from app.core.upstream import FoodDatabaseClient
from app.core.vision import VisionAnalyzer
from app.models.schemas import AuditRequest
from config.settings import get_settings

DEFAULT_DEBUG_URL = "http://127.0.0.1:8000/api-proxy/recipedb/recipe2-api/recipe/recipesinfo?page=1&limit=1"


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Run dish audits and recipe suggestions locally",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python tools/foodcheck_cli.py audit dinner.jpg
  python tools/foodcheck_cli.py recipes --pantry "rice,garlic" --expiring "spinach"
  python tools/foodcheck_cli.py list-models
  python tools/foodcheck_cli.py debug-fetch
        """
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use offline model interfaces"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    audit = subparsers.add_parser("audit", help="Audit a dish photo")
    audit.add_argument("image", type=str, help="Path to the photo")
    audit.add_argument("--order-id", type=str, default="CLI-0001", help="Order id to report")
    audit.add_argument("--json", action="store_true", help="Output result as JSON")

    recipes = subparsers.add_parser("recipes", help="Suggest recipes for expiring ingredients")
    recipes.add_argument("-p", "--pantry", type=str, default="", help="Pantry contents")
    recipes.add_argument("-e", "--expiring", type=str, default="", help="Ingredients about to spoil")
    recipes.add_argument("--json", action="store_true", help="Output result as JSON")

    subparsers.add_parser("list-models", help="List models on the chat-completion provider")

    debug = subparsers.add_parser("debug-fetch", help="Fetch a proxy URL and report the outcome")
    debug.add_argument("url", nargs="?", default=DEFAULT_DEBUG_URL, help="URL to fetch")

    return parser.parse_args(argv)


def encode_image(path: Path) -> str:
    return base64.b64encode(path.read_bytes()).decode("ascii")


def format_audit(result: dict) -> str:
    """Format an audit response for display."""
    output = [f"\n{'='*60}"]
    if result.get("status") != "success":
        output.append(f"  REJECTED: {result.get('reason') or result.get('message')}")
        output.append(f"{'='*60}")
        return "\n".join(output)

    data = result["data"]
    output.append(f"  {data['recipeName']}")
    output.append(f"  Score: {data['score']} | Category: {data['category']} | Freshness: {data['freshness']}")
    output.append(f"{'='*60}")
    output.append(f"\n  Ingredients: {', '.join(data['ingredients'])}")
    output.append(f"  Calories: {data['calories']} | Protein: {data['protein']} g | Fat: {data['fat']} g")
    output.append(f"\n  {result.get('message', '')}")
    return "\n".join(output)


def format_recipe(recipe) -> str:
    """Format a suggested recipe for display."""
    ingredients = recipe.ingredients
    if isinstance(ingredients, list):
        ingredients = ", ".join(ingredients)
    return "\n".join([
        f"\n  {recipe.name} ({recipe.time})",
        f"    Ingredients: {ingredients}",
        f"    Twist: {recipe.twist}",
        f"    Benefits: {recipe.benefits}",
        f"    Sustainability: {recipe.sustainability}",
    ])


def run_audit(args, manager, settings) -> int:
    image_path = Path(args.image)
    if not image_path.exists():
        print(f"Error: image not found: {image_path}", file=sys.stderr)
        return 1

    database = FoodDatabaseClient(
        proxy_endpoint=settings.proxy_endpoint,
        auth_token=settings.proxy_auth_token,
        timeout=settings.upstream_timeout
    )
    auditor = DishAuditor(VisionAnalyzer(manager.vision), database)
    request = AuditRequest(order_id=args.order_id, photo_urls=[encode_image(image_path)])
    result = auditor.audit(request).to_json()

    if args.json:
        print(json.dumps(result, indent=2))
    else:
        print(format_audit(result))
    return 0 if result["status"] == "success" else 2


def run_recipes(args, manager) -> int:
    assistant = KitchenAssistant(manager.chat)
    outcome = assistant.suggest(args.pantry, args.expiring)

    if args.json:
        print(json.dumps({
            "recipes": [r.model_dump() for r in outcome.recipes],
            "fallback": outcome.used_fallback
        }, indent=2))
        return 0

    if outcome.used_fallback:
        print(f"Live generation failed ({outcome.error}); showing fallback recipes.")
    print(f"Suggested {len(outcome.recipes)} recipes:")
    for recipe in outcome.recipes:
        print(format_recipe(recipe))
    return 0


def run_list_models(manager) -> int:
    chat = manager.chat
    if not isinstance(chat, GroqChatInterface):
        print("Error: model listing needs a live chat provider (drop --mock)", file=sys.stderr)
        return 1
    try:
        models = chat.list_models()
    except Exception as e:
        print(f"Error listing models: {e}", file=sys.stderr)
        return 1

    print("Available Models:")
    for model_id, owner in models:
        print(f"  - {model_id} (Owned by: {owner})")
    return 0


def run_debug_fetch(args, settings) -> int:
    print(f"Fetching: {args.url}")
    try:
        response = requests.get(args.url, timeout=settings.upstream_timeout)
    except requests.RequestException as e:
        print(f"Fetch failed: {e}", file=sys.stderr)
        return 1
    print(f"Status: {response.status_code}")
    print(f"Body length: {len(response.text)}")
    return 0


def main(argv=None) -> int:
    """Main CLI entry point."""
    args = parse_args(argv)
    settings = get_settings()

    if args.command == "debug-fetch":
        return run_debug_fetch(args, settings)

    manager = ModelManager(settings)
    manager.initialize(use_mock=args.mock or settings.use_mock)

    if args.command == "audit":
        return run_audit(args, manager, settings)
    if args.command == "recipes":
        return run_recipes(args, manager)
    return run_list_models(manager)


if __name__ == "__main__":
    sys.exit(main())
