from orbit_sync.main import main

main()
