"""Reviews app package.

Guests review a stay once the reservation is completed; one review per
reservation. Submission goes through the guest booking API and the
public listing API shows the results.
"""
