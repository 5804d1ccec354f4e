from .policy_engine import OnboardingAction, OnboardingDecision, PolicyEngine

__all__ = ["OnboardingAction", "OnboardingDecision", "PolicyEngine"]
