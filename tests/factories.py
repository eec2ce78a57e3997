from fastapi.testclient import TestClient

OWNER = "owner_1"


def actor(user_id: str) -> dict[str, str]:
    return {"X-Actor-Id": user_id}


def create_proposal(client: TestClient, owner: str = OWNER) -> dict:
    response = client.post(
        "/proposals",
        json={
            "product_name": "Oat Crunch Cereal",
            "current_cost": "2.45",
            "category": "Breakfast",
            "formulation": "Replace cane sugar with chicory fibre.",
        },
        headers=actor(owner),
    )
    assert response.status_code == 201
    return response.json()


def invite(client: TestClient, proposal_id: str, user_id: str, owner: str = OWNER) -> dict:
    response = client.post(
        f"/proposals/{proposal_id}/stakeholders",
        json={"user_id": user_id},
        headers=actor(owner),
    )
    assert response.status_code == 201
    return response.json()


def respond(client: TestClient, proposal_id: str, stakeholder: dict, status: str):
    return client.patch(
        f"/proposals/{proposal_id}/stakeholders/{stakeholder['stakeholder_id']}/response",
        json={"status": status},
        headers=actor(stakeholder["user_id"]),
    )


def accepted_stakeholders(client: TestClient, proposal_id: str, *user_ids: str) -> list[dict]:
    stakeholders = []
    for user_id in user_ids:
        stakeholder = invite(client, proposal_id, user_id)
        response = respond(client, proposal_id, stakeholder, "ACCEPTED")
        assert response.status_code == 200
        stakeholders.append(response.json())
    return stakeholders
