from gesturelab.app import main

main()
